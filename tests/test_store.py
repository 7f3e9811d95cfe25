"""Tests for graph persistence."""

import json

import pytest

from qualigraph.errors import StorageError
from qualigraph.models import Entity, KnowledgeGraph, Relation
from qualigraph.store import InMemoryGraphStore, JsonGraphStore, read_json, write_json_atomic


def _sample_graph() -> KnowledgeGraph:
    return KnowledgeGraph(
        entities=[
            Entity(name="Alpha", entity_type="code", observations=["ünïcode", "second"]),
            Entity(name="Beta", entity_type="quote"),
        ],
        relations=[Relation(from_entity="Alpha", to_entity="Beta", relation_type="codes")],
    )


class TestJsonGraphStore:
    def test_missing_file_loads_empty_graph(self, memory_file):
        graph = JsonGraphStore(memory_file).load()
        assert graph.entities == []
        assert graph.relations == []
        assert not memory_file.exists()

    def test_round_trip(self, memory_file):
        store = JsonGraphStore(memory_file)
        store.save(_sample_graph())

        loaded = store.load()
        assert loaded == _sample_graph()

    def test_on_disk_keys(self, memory_file):
        JsonGraphStore(memory_file).save(_sample_graph())

        data = json.loads(memory_file.read_text(encoding="utf-8"))
        assert data["entities"][0] == {
            "name": "Alpha",
            "entityType": "code",
            "observations": ["ünïcode", "second"],
        }
        assert data["relations"][0] == {"from": "Alpha", "to": "Beta", "relationType": "codes"}

    def test_pretty_printed_utf8(self, memory_file):
        JsonGraphStore(memory_file).save(_sample_graph())

        text = memory_file.read_text(encoding="utf-8")
        assert "\n  " in text
        assert "ünïcode" in text

    def test_save_replaces_previous_state(self, memory_file):
        store = JsonGraphStore(memory_file)
        store.save(_sample_graph())
        store.save(KnowledgeGraph())

        assert store.load() == KnowledgeGraph()

    def test_save_leaves_no_temp_files(self, temp_memory_dir, memory_file):
        JsonGraphStore(memory_file).save(_sample_graph())
        assert [p.name for p in temp_memory_dir.iterdir()] == [memory_file.name]

    def test_creates_parent_directories(self, temp_memory_dir):
        path = temp_memory_dir / "nested" / "deeper" / "graph.json"
        JsonGraphStore(path).save(_sample_graph())
        assert path.exists()

    def test_invalid_json_is_storage_error(self, memory_file):
        memory_file.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonGraphStore(memory_file).load()

    def test_invalid_utf8_is_storage_error(self, memory_file):
        memory_file.write_bytes(b'{"entities": [{"name": "\xff\xfe"}]}')
        with pytest.raises(StorageError, match="not valid UTF-8"):
            JsonGraphStore(memory_file).load()

    def test_schema_mismatch_is_storage_error(self, memory_file):
        memory_file.write_text(json.dumps({"entities": [{"name": "x"}]}), encoding="utf-8")
        with pytest.raises(StorageError):
            JsonGraphStore(memory_file).load()

    def test_storage_error_is_os_error(self, memory_file):
        memory_file.write_text("[", encoding="utf-8")
        with pytest.raises(OSError):
            JsonGraphStore(memory_file).load()

    def test_unknown_keys_round_trip_values(self, memory_file):
        """Values written by hand load unchanged."""
        payload = {
            "entities": [{"name": "N", "entityType": "memo", "observations": ["a", "b"]}],
            "relations": [],
        }
        memory_file.write_text(json.dumps(payload), encoding="utf-8")

        store = JsonGraphStore(memory_file)
        store.save(store.load())
        assert json.loads(memory_file.read_text(encoding="utf-8")) == payload


class TestJsonHelpers:
    def test_read_json_missing(self, temp_memory_dir):
        assert read_json(temp_memory_dir / "absent.json") is None

    def test_write_then_read(self, temp_memory_dir):
        path = temp_memory_dir / "data.json"
        write_json_atomic(path, {"a": [1, 2]})
        assert read_json(path) == {"a": [1, 2]}


class TestInMemoryGraphStore:
    def test_starts_empty(self):
        assert InMemoryGraphStore().load() == KnowledgeGraph()

    def test_load_returns_copies(self):
        store = InMemoryGraphStore(_sample_graph())

        graph = store.load()
        graph.entities.clear()

        assert len(store.load().entities) == 2

    def test_save_stores_copy(self):
        store = InMemoryGraphStore()
        graph = _sample_graph()
        store.save(graph)
        graph.entities[0].observations.append("mutated later")

        assert "mutated later" not in store.load().entities[0].observations
        assert store.save_count == 1
