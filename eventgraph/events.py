"""The event record handed to the relation store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

# Raw JSON (as received on the wire) or an already-decoded object.
Content = Union[bytes, str, dict[str, Any]]


@dataclass(frozen=True)
class Event:
    """An immutable event as seen by the storage layer.

    Only the fields the relation store reads are modelled.  ``content`` is
    kept opaque: it is decoded lazily by
    :func:`eventgraph.relations.extract_relation`.
    """

    event_id: str
    room_id: str
    origin_server_ts: int = 0
    content: Content = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Build an :class:`Event` from a client/server style event object.

        Raises:
            ValueError: If ``event_id`` or ``room_id`` is missing.
        """
        try:
            event_id = data["event_id"]
            room_id = data["room_id"]
        except KeyError as exc:
            raise ValueError(f"Event is missing required key {exc.args[0]!r}") from exc
        return cls(
            event_id=event_id,
            room_id=room_id,
            origin_server_ts=int(data.get("origin_server_ts") or 0),
            content=data.get("content") or {},
        )
