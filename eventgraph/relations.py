"""Derive a parent -> child graph edge from an event payload.

An event declares its parent by carrying a relationship descriptor in its
content::

    {
        "body": "...",
        "m.relationship": {
            "rel_type": "m.reference",
            "event_id": "$parent_event_id"
        }
    }

Payloads without a usable descriptor never raise: they simply carry no
relation, so relationship metadata quality can never block ingestion.
"""

from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple, Optional

from eventgraph.events import Event

logger = logging.getLogger(__name__)

RELATIONSHIP_KEY = "m.relationship"


class Relation(NamedTuple):
    parent_event_id: str
    child_event_id: str
    rel_type: str

    def __bool__(self) -> bool:
        return bool(self.parent_event_id and self.child_event_id)


NO_RELATION = Relation("", "", "")


def _decode_content(content: Any) -> Any:
    if isinstance(content, (bytes, bytearray, str)):
        return json.loads(content)
    return content


def extract_relation(event: Optional[Event]) -> Relation:
    """Return the ``(parent, child, rel_type)`` edge declared by *event*.

    Returns :data:`NO_RELATION` when *event* is ``None``, when its content is
    not valid JSON, or when the descriptor is missing, mistyped or has an
    empty ``rel_type`` / ``event_id``.
    """
    if event is None or not event.event_id:
        return NO_RELATION

    try:
        body = _decode_content(event.content)
    except (ValueError, TypeError, RecursionError) as exc:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors;
        # pathologically nested payloads exhaust the decoder stack.
        logger.debug("Ignoring undecodable content on %s: %s", event.event_id, exc)
        return NO_RELATION

    if not isinstance(body, dict):
        logger.debug("Ignoring non-object content on %s", event.event_id)
        return NO_RELATION

    descriptor = body.get(RELATIONSHIP_KEY)
    if descriptor is None:
        return NO_RELATION
    if not isinstance(descriptor, dict):
        logger.debug("Ignoring malformed %s on %s", RELATIONSHIP_KEY, event.event_id)
        return NO_RELATION

    rel_type = descriptor.get("rel_type") or ""
    parent_id = descriptor.get("event_id") or ""
    if not isinstance(rel_type, str) or not isinstance(parent_id, str):
        logger.debug("Ignoring non-string %s fields on %s", RELATIONSHIP_KEY, event.event_id)
        return NO_RELATION

    if not rel_type or not parent_id:
        return NO_RELATION

    return Relation(parent_id, event.event_id, rel_type)
