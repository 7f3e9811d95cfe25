"""Indexed, read-only view over a loaded graph.

Built once per operation from the graph returned by ``GraphStore.load``.

Indices for O(1) lookups:
- _by_name: entity name -> Entity
- _outgoing: entity name -> relations from it (graph order)
- _incoming: entity name -> relations to it (graph order)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .errors import NotFoundError
from .models import Entity, KnowledgeGraph, Relation


def _type_matches(entity: Entity, entity_types: str | Iterable[str] | None) -> bool:
    if entity_types is None:
        return True
    if isinstance(entity_types, str):
        return entity.entity_type == entity_types
    return entity.entity_type in entity_types


@dataclass
class GraphState:
    """Materialized indices over a KnowledgeGraph."""

    graph: KnowledgeGraph = field(default_factory=KnowledgeGraph)

    _by_name: dict[str, Entity] = field(default_factory=dict)
    _outgoing: dict[str, list[Relation]] = field(default_factory=dict)
    _incoming: dict[str, list[Relation]] = field(default_factory=dict)

    @classmethod
    def from_graph(cls, graph: KnowledgeGraph) -> GraphState:
        state = cls(graph=graph)
        state._rebuild_indices()
        return state

    @property
    def entities(self) -> list[Entity]:
        return self.graph.entities

    @property
    def relations(self) -> list[Relation]:
        return self.graph.relations

    def _rebuild_indices(self) -> None:
        """Rebuild all indices from entities and relations."""
        self._by_name = {}
        for entity in self.graph.entities:
            # First occurrence wins if a hand-edited file repeats a name
            self._by_name.setdefault(entity.name, entity)

        self._outgoing = {}
        self._incoming = {}
        for rel in self.graph.relations:
            self._outgoing.setdefault(rel.from_entity, []).append(rel)
            self._incoming.setdefault(rel.to_entity, []).append(rel)

    # --- Entity lookup ---

    def get_entity(self, name: str, entity_type: str | None = None) -> Entity | None:
        """O(1) lookup by name, optionally requiring a type."""
        entity = self._by_name.get(name)
        if entity is None or not _type_matches(entity, entity_type):
            return None
        return entity

    def require_entity(
        self,
        name: str,
        entity_type: str | None = None,
        label: str = "Entity",
    ) -> Entity:
        """Lookup that raises NotFoundError when the root is missing."""
        entity = self.get_entity(name, entity_type)
        if entity is None:
            raise NotFoundError(f"{label} '{name}' not found")
        return entity

    # --- Relation lookup ---

    def get_outgoing_relations(self, name: str, relation_type: str | None = None) -> list[Relation]:
        relations = self._outgoing.get(name, [])
        if relation_type is None:
            return list(relations)
        return [r for r in relations if r.relation_type == relation_type]

    def get_incoming_relations(self, name: str, relation_type: str | None = None) -> list[Relation]:
        relations = self._incoming.get(name, [])
        if relation_type is None:
            return list(relations)
        return [r for r in relations if r.relation_type == relation_type]

    def get_relations_for(self, name: str) -> list[Relation]:
        """All relations touching an entity, in graph order."""
        return [
            r for r in self.graph.relations
            if r.from_entity == name or r.to_entity == name
        ]

    def sources(
        self,
        name: str,
        relation_type: str,
        entity_types: str | Iterable[str] | None = None,
    ) -> list[Entity]:
        """Entities with a `relation_type` edge pointing at `name`."""
        result = []
        for rel in self.get_incoming_relations(name, relation_type):
            entity = self._by_name.get(rel.from_entity)
            if entity is not None and _type_matches(entity, entity_types):
                result.append(entity)
        return result

    def targets(
        self,
        name: str,
        relation_type: str,
        entity_types: str | Iterable[str] | None = None,
    ) -> list[Entity]:
        """Entities that `name` points at via a `relation_type` edge."""
        result = []
        for rel in self.get_outgoing_relations(name, relation_type):
            entity = self._by_name.get(rel.to_entity)
            if entity is not None and _type_matches(entity, entity_types):
                result.append(entity)
        return result

    def part_of(self, project_name: str, entity_types: str | Iterable[str] | None = None) -> list[Entity]:
        """Entities declared `part_of` a project."""
        return self.sources(project_name, "part_of", entity_types)

    def linked_value(self, name: str, relation_type: str) -> str | None:
        """Value segment of the target of `name`'s `relation_type` edge.

        Used for has_status / has_priority, whose targets are named
        "status:<value>" / "priority:<value>". Returns None without an edge.
        """
        for rel in self.get_outgoing_relations(name, relation_type):
            _, sep, value = rel.to_entity.partition(":")
            return value if sep else rel.to_entity
        return None

    # --- Subgraphs ---

    def induced_subgraph(self, names: Iterable[str]) -> KnowledgeGraph:
        """Entities named in `names` plus relations with both endpoints in that set."""
        wanted = set(names)
        return KnowledgeGraph(
            entities=[e for e in self.graph.entities if e.name in wanted],
            relations=[
                r for r in self.graph.relations
                if r.from_entity in wanted and r.to_entity in wanted
            ],
        )
