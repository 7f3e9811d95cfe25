"""Shared test fixtures and helpers for qualigraph tests."""

import tempfile
from pathlib import Path

import pytest

from qualigraph.engine import ResearchGraphEngine
from qualigraph.models import Entity, KnowledgeGraph, Relation
from qualigraph.sessions import SessionStore
from qualigraph.store import InMemoryGraphStore, JsonGraphStore


# --- Fixtures ---


@pytest.fixture
def temp_memory_dir():
    """Provide a temporary directory for graph and session files.

    Yields a Path to a temporary directory that's cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_file(temp_memory_dir):
    return temp_memory_dir / "qualitative_research_memory.json"


@pytest.fixture
def engine(memory_file):
    """Provide a fresh engine over an empty JSON graph file."""
    return ResearchGraphEngine(JsonGraphStore(memory_file))


@pytest.fixture
def memory_engine():
    """Provide an engine over an in-memory store (no files)."""
    return ResearchGraphEngine(InMemoryGraphStore())


@pytest.fixture
def sessions(temp_memory_dir):
    return SessionStore(temp_memory_dir / "qualitative_research_sessions.json")


@pytest.fixture
def populated_engine(engine):
    """Provide an engine holding a small but complete research study.

    Project "Remote Work Study" with two participants, two interviews, one
    document, quotes coded with three codes, a code group, two themes, a
    research question with a finding, memos and cited literature.
    """
    populate_study(engine)
    return engine


# --- Helper Functions (not fixtures) ---


def make_entity(name: str, entity_type: str = "code", observations: list[str] | None = None) -> Entity:
    """Shorthand for creating an Entity."""
    return Entity(name=name, entity_type=entity_type, observations=observations or [])


def make_relation(from_name: str, to_name: str, relation_type: str = "related_to") -> Relation:
    """Shorthand for creating a Relation."""
    return Relation(from_entity=from_name, to_entity=to_name, relation_type=relation_type)


def make_graph(entities: list[Entity], relations: list[Relation] | None = None) -> KnowledgeGraph:
    return KnowledgeGraph(entities=entities, relations=relations or [])


STUDY = "Remote Work Study"


def populate_study(engine: ResearchGraphEngine) -> None:
    """Create the sample study used across view, context and CLI tests."""
    engine.create_entities([
        {"name": STUDY, "entityType": "project", "observations": [
            "Explores how remote workers maintain boundaries",
            "Method: semi-structured interviews",
            "Sampling: purposive sampling of full-time remote staff",
            "Budget approved in March",
        ]},
        {"name": "RQ1", "entityType": "researchQuestion", "observations": [
            "How do remote workers separate work and home life?",
        ]},
        {"name": "Alice", "entityType": "participant", "observations": [
            "Age: 34",
            "Occupation: software engineer",
            "Prefers mornings",
        ]},
        {"name": "Bob", "entityType": "participant", "observations": ["Gender: male"]},
        {"name": "Interview Alice", "entityType": "interview", "observations": [
            "participant: Alice",
            "date: 2024-01-05",
            "Date: 2024-01-05",
            "Talked about home office setup",
        ]},
        {"name": "Interview Bob", "entityType": "interview", "observations": [
            "Date: 2024-01-01",
        ]},
        {"name": "Policy Doc", "entityType": "document", "observations": [
            "Company remote work policy",
        ]},
        {"name": "Q1", "entityType": "quote", "observations": [
            "source: Interview Alice",
            "I close the laptop at six sharp",
        ]},
        {"name": "Q2", "entityType": "quote", "observations": [
            "source: Interview Bob",
            "My kids walk in during calls",
        ]},
        {"name": "boundaries", "entityType": "code", "observations": ["Setting limits on work time"]},
        {"name": "family", "entityType": "code", "observations": ["Family interactions"]},
        {"name": "routines", "entityType": "code", "observations": ["Daily routines"]},
        {"name": "Work-life", "entityType": "codeGroup", "observations": ["Work-life balance codes"]},
        {"name": "Boundary Work", "entityType": "theme", "observations": [
            "Active effort to separate spheres",
            "Status: developing",
        ]},
        {"name": "Intrusions", "entityType": "theme", "observations": ["Home life leaks into work"]},
        {"name": "F1", "entityType": "finding", "observations": ["Rituals mark the end of the day"]},
        {"name": "Memo Early", "entityType": "memo", "observations": [
            "topic: First impressions",
            "Date: 2024-01-02",
            "Boundaries seem central",
        ]},
        {"name": "Memo Late", "entityType": "memo", "observations": [
            "Date: 2024-02-10",
            "Sampling may need more parents",
        ]},
        {"name": "Memo Undated", "entityType": "memo", "observations": ["Loose thought"]},
        {"name": "Nippert-Eng 1996", "entityType": "literature", "observations": ["Home and Work"]},
    ])

    engine.create_relations([
        {"from": "RQ1", "to": STUDY, "relationType": "part_of"},
        {"from": "Alice", "to": STUDY, "relationType": "part_of"},
        {"from": "Bob", "to": STUDY, "relationType": "part_of"},
        {"from": "Interview Alice", "to": STUDY, "relationType": "part_of"},
        {"from": "Interview Bob", "to": STUDY, "relationType": "part_of"},
        {"from": "Policy Doc", "to": STUDY, "relationType": "part_of"},
        {"from": "Boundary Work", "to": STUDY, "relationType": "part_of"},
        {"from": "Intrusions", "to": STUDY, "relationType": "part_of"},
        {"from": "F1", "to": STUDY, "relationType": "part_of"},
        {"from": "Alice", "to": "Interview Alice", "relationType": "participated_in"},
        {"from": "Bob", "to": "Interview Bob", "relationType": "participated_in"},
        {"from": "Interview Alice", "to": "Q1", "relationType": "contains"},
        {"from": "Interview Bob", "to": "Q2", "relationType": "contains"},
        {"from": "Q1", "to": "Alice", "relationType": "contains"},
        {"from": "boundaries", "to": "Q1", "relationType": "codes"},
        {"from": "routines", "to": "Q1", "relationType": "codes"},
        {"from": "family", "to": "Q2", "relationType": "codes"},
        {"from": "boundaries", "to": "Q2", "relationType": "codes"},
        {"from": "Work-life", "to": "boundaries", "relationType": "contains"},
        {"from": "boundaries", "to": "Boundary Work", "relationType": "supports"},
        {"from": "routines", "to": "Boundary Work", "relationType": "supports"},
        {"from": "family", "to": "Intrusions", "relationType": "supports"},
        {"from": "F1", "to": "RQ1", "relationType": "answers"},
        {"from": "Boundary Work", "to": "RQ1", "relationType": "answers"},
        {"from": "Q1", "to": "RQ1", "relationType": "answers"},
        {"from": "Memo Early", "to": "Boundary Work", "relationType": "reflects_on"},
        {"from": "Memo Early", "to": "Alice", "relationType": "reflects_on"},
        {"from": "Memo Undated", "to": "Alice", "relationType": "reflects_on"},
        {"from": "Memo Late", "to": "Alice", "relationType": "reflects_on"},
        {"from": "Memo Late", "to": STUDY, "relationType": "reflects_on"},
        {"from": "Memo Undated", "to": STUDY, "relationType": "reflects_on"},
        {"from": STUDY, "to": "Nippert-Eng 1996", "relationType": "cites"},
    ])
