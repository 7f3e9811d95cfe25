"""Graph persistence.

The whole graph is loaded and saved as one unit. ``GraphStore`` is the only
I/O boundary the engine knows about, so file-backed and in-memory stores are
interchangeable.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from .errors import StorageError
from .models import KnowledgeGraph

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """Load/save contract for the persisted graph."""

    def load(self) -> KnowledgeGraph:
        """Return the persisted graph, or an empty graph if nothing was saved yet."""
        ...

    def save(self, graph: KnowledgeGraph) -> None:
        """Persist the entire graph, replacing prior state."""
        ...


def read_json(path: Path) -> Any | None:
    """Read a JSON file. Returns None if the file does not exist."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.error(f"Failed to read {path}: {e}")
        raise StorageError(f"Failed to read {path}: {e}") from e
    except UnicodeDecodeError as e:
        logger.error(f"{path} is not valid UTF-8: {e}")
        raise StorageError(f"{path} is not valid UTF-8: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}: {e}")
        raise StorageError(f"Invalid JSON in {path}: {e}") from e


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write pretty-printed JSON via a temp file in the same directory + os.replace."""
    tmp_path: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp_file:
            tmp_path = tmp_file.name
            json.dump(payload, tmp_file, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StorageError(f"Failed to write {path}: {e}") from e


class JsonGraphStore:
    """Graph store backed by a single pretty-printed JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> KnowledgeGraph:
        data = read_json(self.path)
        if data is None:
            logger.debug(f"No graph file at {self.path}, starting empty")
            return KnowledgeGraph()

        try:
            graph = KnowledgeGraph.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Graph file {self.path} does not match the schema: {e}")
            raise StorageError(f"Graph file {self.path} does not match the schema: {e}") from e

        logger.debug(
            f"Loaded {len(graph.entities)} entities, {len(graph.relations)} relations from {self.path}"
        )
        return graph

    def save(self, graph: KnowledgeGraph) -> None:
        write_json_atomic(self.path, graph.to_json_dict())
        logger.debug(
            f"Saved {len(graph.entities)} entities, {len(graph.relations)} relations to {self.path}"
        )


class InMemoryGraphStore:
    """Graph store that keeps a private copy in memory. Used by tests."""

    def __init__(self, graph: KnowledgeGraph | None = None):
        self._graph = graph.model_copy(deep=True) if graph is not None else KnowledgeGraph()
        self.save_count = 0

    def load(self) -> KnowledgeGraph:
        return self._graph.model_copy(deep=True)

    def save(self, graph: KnowledgeGraph) -> None:
        self._graph = graph.model_copy(deep=True)
        self.save_count += 1
