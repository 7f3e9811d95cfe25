"""Tests for the relation-based status and priority values."""

import pytest

from qualigraph.constants import HAS_PRIORITY, HAS_STATUS, PRIORITY_VALUES, STATUS_VALUES
from qualigraph.errors import NotFoundError, ValidationError


def _status_edges(engine, name):
    return [
        r for r in engine.read_graph().relations
        if r.from_entity == name and r.relation_type == HAS_STATUS
    ]


class TestInitialize:
    def test_seeds_every_value(self, engine):
        seeded = engine.initialize_status_and_priority()

        names = {e.name for e in engine.read_graph().entities}
        assert len(seeded) == len(STATUS_VALUES) + len(PRIORITY_VALUES)
        assert {f"status:{v}" for v in STATUS_VALUES} <= names
        assert {f"priority:{v}" for v in PRIORITY_VALUES} <= names

    def test_idempotent(self, engine):
        engine.initialize_status_and_priority()
        assert engine.initialize_status_and_priority() == []
        assert len(engine.read_graph().entities) == len(STATUS_VALUES) + len(PRIORITY_VALUES)

    def test_does_not_overwrite_existing(self, engine):
        engine.create_entities([
            {"name": "status:draft", "entityType": "status", "observations": ["custom"]},
        ])
        engine.initialize_status_and_priority()

        draft = [e for e in engine.read_graph().entities if e.name == "status:draft"]
        assert len(draft) == 1
        assert draft[0].observations == ["custom"]

    def test_value_entity_types(self, engine):
        engine.initialize_status_and_priority()
        types = {e.name: e.entity_type for e in engine.read_graph().entities}
        assert types["status:final"] == "status"
        assert types["priority:high"] == "priority"


class TestStatus:
    def test_at_most_one_status(self, engine):
        engine.initialize_status_and_priority()
        engine.create_entities([{"name": "X", "entityType": "finding"}])

        engine.set_entity_status("X", "draft")
        engine.set_entity_status("X", "final")

        edges = _status_edges(engine, "X")
        assert len(edges) == 1
        assert edges[0].to_entity == "status:final"
        assert engine.get_entity_status("X") == "final"

    def test_set_same_value_twice(self, engine):
        engine.create_entities([{"name": "X", "entityType": "finding"}])
        engine.set_entity_status("X", "draft")
        engine.set_entity_status("X", "draft")
        assert len(_status_edges(engine, "X")) == 1

    def test_invalid_value(self, engine):
        engine.create_entities([{"name": "X", "entityType": "finding"}])
        with pytest.raises(ValidationError):
            engine.set_entity_status("X", "abandoned")
        assert engine.get_entity_status("X") is None

    def test_missing_entity(self, engine):
        with pytest.raises(NotFoundError):
            engine.set_entity_status("Ghost", "draft")

    def test_seeds_value_entity_when_uninitialized(self, engine):
        engine.create_entities([{"name": "X", "entityType": "theme"}])
        engine.set_entity_status("X", "emerging")

        names = {e.name for e in engine.read_graph().entities}
        assert "status:emerging" in names

    def test_get_without_status(self, engine):
        engine.create_entities([{"name": "X", "entityType": "theme"}])
        assert engine.get_entity_status("X") is None
        assert engine.get_entity_status("Ghost") is None

    def test_status_independent_per_entity(self, engine):
        engine.create_entities([
            {"name": "X", "entityType": "theme"},
            {"name": "Y", "entityType": "theme"},
        ])
        engine.set_entity_status("X", "developing")
        engine.set_entity_status("Y", "established")
        assert engine.get_entity_status("X") == "developing"
        assert engine.get_entity_status("Y") == "established"

    def test_entity_delete_removes_status_edge(self, engine):
        engine.create_entities([{"name": "X", "entityType": "theme"}])
        engine.set_entity_status("X", "initial")
        engine.delete_entities(["X"])
        assert all(r.from_entity != "X" for r in engine.read_graph().relations)


class TestPriority:
    def test_replace_priority(self, engine):
        engine.create_entities([{"name": "X", "entityType": "researchQuestion"}])

        engine.set_entity_priority("X", "low")
        engine.set_entity_priority("X", "high")

        edges = [
            r for r in engine.read_graph().relations
            if r.from_entity == "X" and r.relation_type == HAS_PRIORITY
        ]
        assert [r.to_entity for r in edges] == ["priority:high"]
        assert engine.get_entity_priority("X") == "high"

    def test_priority_does_not_touch_status(self, engine):
        engine.create_entities([{"name": "X", "entityType": "finding"}])
        engine.set_entity_status("X", "draft")
        engine.set_entity_priority("X", "medium")
        assert engine.get_entity_status("X") == "draft"
        assert engine.get_entity_priority("X") == "medium"

    def test_invalid_priority(self, engine):
        engine.create_entities([{"name": "X", "entityType": "finding"}])
        with pytest.raises(ValidationError):
            engine.set_entity_priority("X", "urgent")
