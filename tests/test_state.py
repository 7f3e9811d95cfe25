"""Tests for GraphState indices and lookups."""

import pytest

from qualigraph.errors import NotFoundError
from qualigraph.state import GraphState

from conftest import make_entity, make_graph, make_relation


@pytest.fixture
def state():
    graph = make_graph(
        [
            make_entity("P", "project"),
            make_entity("A", "participant"),
            make_entity("I", "interview"),
            make_entity("Q", "quote"),
            make_entity("X", "theme"),
        ],
        [
            make_relation("A", "P", "part_of"),
            make_relation("I", "P", "part_of"),
            make_relation("A", "I", "participated_in"),
            make_relation("I", "Q", "contains"),
            make_relation("X", "status:draft", "has_status"),
        ],
    )
    return GraphState.from_graph(graph)


class TestEntityLookup:
    def test_get_entity(self, state):
        assert state.get_entity("A").entity_type == "participant"
        assert state.get_entity("missing") is None

    def test_get_entity_with_type(self, state):
        assert state.get_entity("A", "participant") is not None
        assert state.get_entity("A", "project") is None

    def test_require_entity(self, state):
        assert state.require_entity("P", "project").name == "P"

    def test_require_entity_label(self, state):
        with pytest.raises(NotFoundError, match="Project 'A' not found"):
            state.require_entity("A", "project", label="Project")

    def test_first_duplicate_name_wins(self):
        state = GraphState.from_graph(make_graph([
            make_entity("dup", "code", ["first"]),
            make_entity("dup", "theme", ["second"]),
        ]))
        assert state.get_entity("dup").observations == ["first"]


class TestRelationLookup:
    def test_outgoing_and_incoming(self, state):
        assert [r.to_entity for r in state.get_outgoing_relations("A")] == ["P", "I"]
        assert [r.from_entity for r in state.get_incoming_relations("P")] == ["A", "I"]

    def test_filter_by_type(self, state):
        assert len(state.get_outgoing_relations("A", "part_of")) == 1
        assert state.get_incoming_relations("P", "contains") == []

    def test_relations_for_graph_order(self, state):
        keys = [r.key for r in state.get_relations_for("I")]
        assert keys == [("I", "P", "part_of"), ("A", "I", "participated_in"), ("I", "Q", "contains")]

    def test_sources_and_targets(self, state):
        assert [e.name for e in state.sources("I", "participated_in")] == ["A"]
        assert [e.name for e in state.targets("I", "contains", "quote")] == ["Q"]
        assert state.targets("I", "contains", "code") == []

    def test_part_of_with_types(self, state):
        assert [e.name for e in state.part_of("P")] == ["A", "I"]
        assert [e.name for e in state.part_of("P", ("interview", "document"))] == ["I"]

    def test_dangling_endpoints_skipped(self, state):
        # status:draft has no entity in this graph
        assert state.targets("X", "has_status") == []

    def test_linked_value(self, state):
        assert state.linked_value("X", "has_status") == "draft"
        assert state.linked_value("X", "has_priority") is None
        assert state.linked_value("missing", "has_status") is None


class TestInducedSubgraph:
    def test_keeps_internal_relations_only(self, state):
        sub = state.induced_subgraph(["A", "I"])
        assert [e.name for e in sub.entities] == ["A", "I"]
        assert [r.key for r in sub.relations] == [("A", "I", "participated_in")]

    def test_preserves_graph_order(self, state):
        sub = state.induced_subgraph(["Q", "P", "A"])
        assert [e.name for e in sub.entities] == ["P", "A", "Q"]

    def test_unknown_names_ignored(self, state):
        assert state.induced_subgraph(["nope"]).entities == []
