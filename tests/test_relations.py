"""Tests for relationship extraction from event content."""

from __future__ import annotations

import json
import logging

import pytest

from eventgraph.events import Event
from eventgraph.relations import NO_RELATION, Relation, extract_relation


def _event(content, event_id: str = "$child", room_id: str = "!room:example.org") -> Event:
    return Event(event_id=event_id, room_id=room_id, origin_server_ts=1700000000000, content=content)


def _rel(rel_type="m.reference", event_id="$parent") -> dict:
    return {"body": "hi", "m.relationship": {"rel_type": rel_type, "event_id": event_id}}


class TestExtractRelation:
    def test_none_event(self) -> None:
        assert extract_relation(None) == NO_RELATION

    def test_dict_content(self) -> None:
        assert extract_relation(_event(_rel())) == Relation("$parent", "$child", "m.reference")

    def test_json_string_content(self) -> None:
        rel = extract_relation(_event(json.dumps(_rel(rel_type="m.reply"))))
        assert rel == ("$parent", "$child", "m.reply")

    def test_json_bytes_content(self) -> None:
        rel = extract_relation(_event(json.dumps(_rel()).encode("utf-8")))
        assert rel.parent_event_id == "$parent"
        assert rel.child_event_id == "$child"

    def test_missing_descriptor(self) -> None:
        assert extract_relation(_event({"body": "plain message"})) == NO_RELATION

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            b"\xff\xfe",
            "[1, 2, 3]",
            "null",
            "[" * 200000 + "]" * 200000,
            ("{\"a\": " * 200000 + "1" + "}" * 200000).encode("utf-8"),
            {"m.relationship": "oops"},
            {"m.relationship": {"rel_type": 5, "event_id": "$parent"}},
            {"m.relationship": {"rel_type": "m.reference", "event_id": ["$parent"]}},
        ],
    )
    def test_malformed_content_is_no_relation(self, content) -> None:
        assert extract_relation(_event(content)) == NO_RELATION

    @pytest.mark.parametrize(
        "descriptor",
        [
            {"rel_type": "", "event_id": "$parent"},
            {"rel_type": "m.reference", "event_id": ""},
            {"rel_type": "m.reference"},
            {"event_id": "$parent"},
            {},
        ],
    )
    def test_empty_fields_are_no_relation(self, descriptor) -> None:
        assert extract_relation(_event({"m.relationship": descriptor})) == NO_RELATION

    def test_empty_event_id_is_no_relation(self) -> None:
        assert extract_relation(_event(_rel(), event_id="")) == NO_RELATION

    def test_self_reference_is_kept(self) -> None:
        rel = extract_relation(_event(_rel(event_id="$child")))
        assert rel == ("$child", "$child", "m.reference")

    def test_malformed_content_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="eventgraph.relations"):
            extract_relation(_event("{not json"))
        assert "$child" in caplog.text


class TestRelation:
    def test_no_relation_is_falsy(self) -> None:
        assert not NO_RELATION

    def test_relation_is_truthy(self) -> None:
        assert Relation("$p", "$c", "m.reference")

    def test_unpacks_as_triple(self) -> None:
        parent, child, rel_type = Relation("$p", "$c", "m.reference")
        assert (parent, child, rel_type) == ("$p", "$c", "m.reference")


class TestEventFromDict:
    def test_full_event(self) -> None:
        ev = Event.from_dict(
            {
                "event_id": "$e",
                "room_id": "!r",
                "origin_server_ts": 42,
                "content": _rel(),
                "sender": "@alice:example.org",
            }
        )
        assert ev.event_id == "$e"
        assert ev.room_id == "!r"
        assert ev.origin_server_ts == 42
        assert extract_relation(ev) == ("$parent", "$e", "m.reference")

    def test_defaults(self) -> None:
        ev = Event.from_dict({"event_id": "$e", "room_id": "!r"})
        assert ev.origin_server_ts == 0
        assert ev.content == {}

    def test_missing_event_id_raises(self) -> None:
        with pytest.raises(ValueError, match="event_id"):
            Event.from_dict({"room_id": "!r"})
