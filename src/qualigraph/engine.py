"""Research graph engine - mutations, status/priority, and delegated reads.

Every mutating operation is one load -> validate -> mutate -> save cycle
against the injected ``GraphStore``. Validation covers the whole batch before
anything changes, so a rejected batch leaves the store untouched.
"""

import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .constants import (
    HAS_PRIORITY,
    HAS_STATUS,
    PRIORITY_ENTITY_TYPE,
    PRIORITY_VALUES,
    STATUS_ENTITY_TYPE,
    STATUS_VALUES,
    VALID_ENTITY_TYPES,
    VALID_RELATION_TYPES,
)
from .errors import NotFoundError, ValidationError
from .models import (
    AddObservationResult,
    DeleteObservationResult,
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)
from .query import QueryService
from .reports import (
    ChronologicalData,
    CodeCooccurrence,
    CodedData,
    MemosByFocus,
    MethodologyDetails,
    ParticipantProfile,
    ProjectOverview,
    RelatedEntities,
    ResearchQuestionAnalysis,
    ThematicAnalysis,
)
from .state import GraphState
from .store import GraphStore, JsonGraphStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _coerce(model: type[M], items: list[Any]) -> list[M]:
    """Accept models or plain dicts (tool input); reject malformed items."""
    result = []
    for item in items:
        if isinstance(item, model):
            result.append(item)
            continue
        try:
            result.append(model.model_validate(item))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {model.__name__}: {e}") from e
    return result


def status_entity_name(value: str) -> str:
    return f"{STATUS_ENTITY_TYPE}:{value}"


def priority_entity_name(value: str) -> str:
    return f"{PRIORITY_ENTITY_TYPE}:{value}"


class ResearchGraphEngine:
    """Main entry point for research graph operations.

    Holds no graph state between calls: each operation loads from the store
    and, if it changed anything, saves back. Overlapping writers against the
    same store are last-save-wins.
    """

    def __init__(self, store: GraphStore):
        self.store = store

        # Query service - all read-only operations delegated here
        self._query = QueryService(load=self.store.load)

    @classmethod
    def from_path(cls, path: Path) -> "ResearchGraphEngine":
        """Engine over a JSON graph file."""
        return cls(JsonGraphStore(path))

    def _save(self, graph: KnowledgeGraph) -> None:
        self.store.save(graph)

    # --- Entity operations ---

    def create_entities(self, entities: list[Entity | dict]) -> list[Entity]:
        """Insert entities whose names are not taken yet.

        Raises ValidationError if any entityType is unknown. Existing names,
        and repeats within the batch, are skipped. Returns what was inserted,
        in input order.
        """
        items = _coerce(Entity, entities)
        for entity in items:
            if entity.entity_type not in VALID_ENTITY_TYPES:
                raise ValidationError(f"Invalid entity type: {entity.entity_type}")

        graph = self.store.load()
        existing = {e.name for e in graph.entities}
        created: list[Entity] = []

        for entity in items:
            if entity.name in existing:
                logger.debug(f"Entity '{entity.name}' already exists, skipping")
                continue
            entity = entity.model_copy(
                update={"observations": list(dict.fromkeys(entity.observations))}
            )
            graph.entities.append(entity)
            existing.add(entity.name)
            created.append(entity)

        if created:
            self._save(graph)
        logger.info(f"Created {len(created)} of {len(items)} entities")
        return created

    def delete_entities(self, names: list[str]) -> list[str]:
        """Delete entities and every relation touching them.

        Unknown names are ignored. Returns the names actually removed.
        Raises ValidationError unless `names` is a list of strings.
        """
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValidationError(f"Entity names must be a list of strings, got {names!r}")

        graph = self.store.load()
        existing = {e.name for e in graph.entities}
        doomed = [name for name in dict.fromkeys(names) if name in existing]
        if not doomed:
            logger.debug(f"delete_entities: none of {names} exist")
            return []

        doomed_set = set(doomed)
        before = len(graph.relations)
        graph.entities = [e for e in graph.entities if e.name not in doomed_set]
        graph.relations = [
            r for r in graph.relations
            if r.from_entity not in doomed_set and r.to_entity not in doomed_set
        ]
        self._save(graph)
        logger.info(
            f"Deleted {len(doomed)} entities and {before - len(graph.relations)} incident relations"
        )
        return doomed

    # --- Relation operations ---

    def create_relations(self, relations: list[Relation | dict]) -> list[Relation]:
        """Insert relations between existing entities.

        Raises ValidationError for an unknown relationType and NotFoundError
        for a missing endpoint; either rejects the whole batch. Triples that
        already exist, or repeat within the batch, are skipped.
        """
        items = _coerce(Relation, relations)
        for rel in items:
            if rel.relation_type not in VALID_RELATION_TYPES:
                raise ValidationError(f"Invalid relation type: {rel.relation_type}")

        graph = self.store.load()
        names = {e.name for e in graph.entities}
        for rel in items:
            if rel.from_entity not in names:
                raise NotFoundError(f"Entity '{rel.from_entity}' not found")
            if rel.to_entity not in names:
                raise NotFoundError(f"Entity '{rel.to_entity}' not found")

        existing = {r.key for r in graph.relations}
        created: list[Relation] = []
        for rel in items:
            if rel.key in existing:
                logger.debug(f"Relation {rel.key} already exists, skipping")
                continue
            graph.relations.append(rel)
            existing.add(rel.key)
            created.append(rel)

        if created:
            self._save(graph)
        logger.info(f"Created {len(created)} of {len(items)} relations")
        return created

    def delete_relations(self, relations: list[Relation | dict]) -> list[Relation]:
        """Remove exact (from, to, relationType) matches. Returns what was removed."""
        keys = {rel.key for rel in _coerce(Relation, relations)}

        graph = self.store.load()
        removed = [r for r in graph.relations if r.key in keys]
        if not removed:
            logger.debug("delete_relations: no matching relations")
            return []

        graph.relations = [r for r in graph.relations if r.key not in keys]
        self._save(graph)
        logger.info(f"Deleted {len(removed)} relations")
        return removed

    # --- Observation operations ---

    def add_observations(
        self,
        additions: list[ObservationAddition | dict],
    ) -> list[AddObservationResult]:
        """Append observations, skipping strings the entity already has.

        Raises NotFoundError (for the whole batch) if any target is missing.
        Returns, per input item, exactly the strings newly appended.
        """
        items = _coerce(ObservationAddition, additions)

        graph = self.store.load()
        state = GraphState.from_graph(graph)
        for addition in items:
            state.require_entity(addition.entity_name)

        results: list[AddObservationResult] = []
        total = 0
        for addition in items:
            entity = state.get_entity(addition.entity_name)
            present = set(entity.observations)
            added = []
            for content in addition.contents:
                if content in present:
                    continue
                entity.observations.append(content)
                present.add(content)
                added.append(content)
            total += len(added)
            results.append(AddObservationResult(entity_name=entity.name, added_observations=added))

        if total:
            self._save(graph)
        logger.info(f"Added {total} observations across {len(items)} entities")
        return results

    def delete_observations(
        self,
        deletions: list[ObservationDeletion | dict],
    ) -> list[DeleteObservationResult]:
        """Remove exact observation strings. Missing entities are ignored."""
        items = _coerce(ObservationDeletion, deletions)

        graph = self.store.load()
        state = GraphState.from_graph(graph)
        results: list[DeleteObservationResult] = []
        total = 0

        for deletion in items:
            entity = state.get_entity(deletion.entity_name)
            if entity is None:
                logger.debug(f"delete_observations: '{deletion.entity_name}' not found, skipping")
                continue
            doomed = set(deletion.observations)
            removed = [obs for obs in entity.observations if obs in doomed]
            entity.observations = [obs for obs in entity.observations if obs not in doomed]
            total += len(removed)
            results.append(DeleteObservationResult(entity_name=entity.name, deleted_observations=removed))

        if total:
            self._save(graph)
        logger.info(f"Deleted {total} observations")
        return results

    # --- Status / priority ---

    def initialize_status_and_priority(self) -> list[Entity]:
        """Ensure one entity per status and priority value exists.

        Idempotent: existing value entities are left as they are.
        """
        graph = self.store.load()
        existing = {e.name for e in graph.entities}
        seeded = []

        for values, entity_type, make_name in (
            (STATUS_VALUES, STATUS_ENTITY_TYPE, status_entity_name),
            (PRIORITY_VALUES, PRIORITY_ENTITY_TYPE, priority_entity_name),
        ):
            for value in values:
                name = make_name(value)
                if name in existing:
                    continue
                entity = Entity(
                    name=name,
                    entity_type=entity_type,
                    observations=[f"{entity_type.capitalize()} value '{value}'"],
                )
                graph.entities.append(entity)
                existing.add(name)
                seeded.append(entity)

        if seeded:
            self._save(graph)
            logger.info(f"Seeded {len(seeded)} status/priority entities")
        return seeded

    def _set_linked_value(
        self,
        name: str,
        value: str,
        allowed: tuple[str, ...],
        entity_type: str,
        relation_type: str,
    ) -> Relation:
        if value not in allowed:
            raise ValidationError(
                f"Invalid {entity_type} value: {value}. Must be one of: {', '.join(allowed)}"
            )

        graph = self.store.load()
        names = {e.name for e in graph.entities}
        if name not in names:
            raise NotFoundError(f"Entity '{name}' not found")

        target = f"{entity_type}:{value}"
        if target not in names:
            graph.entities.append(Entity(
                name=target,
                entity_type=entity_type,
                observations=[f"{entity_type.capitalize()} value '{value}'"],
            ))

        # Replace, never add alongside: at most one edge of this type per entity
        graph.relations = [
            r for r in graph.relations
            if not (r.from_entity == name and r.relation_type == relation_type)
        ]
        relation = Relation(from_entity=name, to_entity=target, relation_type=relation_type)
        graph.relations.append(relation)
        self._save(graph)
        logger.info(f"Set {entity_type} of '{name}' to {value}")
        return relation

    def set_entity_status(self, name: str, value: str) -> Relation:
        return self._set_linked_value(name, value, STATUS_VALUES, STATUS_ENTITY_TYPE, HAS_STATUS)

    def set_entity_priority(self, name: str, value: str) -> Relation:
        return self._set_linked_value(name, value, PRIORITY_VALUES, PRIORITY_ENTITY_TYPE, HAS_PRIORITY)

    def get_entity_status(self, name: str) -> str | None:
        """Current status value, or None if the entity is missing or has none."""
        return GraphState.from_graph(self.store.load()).linked_value(name, HAS_STATUS)

    def get_entity_priority(self, name: str) -> str | None:
        return GraphState.from_graph(self.store.load()).linked_value(name, HAS_PRIORITY)

    # --- Query operations (delegated to QueryService) ---

    def read_graph(self) -> KnowledgeGraph:
        return self._query.read_graph()

    def search_nodes(self, query: str) -> KnowledgeGraph:
        return self._query.search_nodes(query)

    def open_nodes(self, names: list[str]) -> KnowledgeGraph:
        return self._query.open_nodes(names)

    def get_project_overview(self, project_name: str) -> ProjectOverview:
        return self._query.get_project_overview(project_name)

    def get_participant_profile(self, participant_name: str) -> ParticipantProfile:
        return self._query.get_participant_profile(participant_name)

    def get_thematic_analysis(self, project_name: str) -> ThematicAnalysis:
        return self._query.get_thematic_analysis(project_name)

    def get_coded_data(self, code_name: str) -> CodedData:
        return self._query.get_coded_data(code_name)

    def get_research_question_analysis(self, project_name: str) -> ResearchQuestionAnalysis:
        return self._query.get_research_question_analysis(project_name)

    def get_chronological_data(self, project_name: str, data_type: str | None = None) -> ChronologicalData:
        return self._query.get_chronological_data(project_name, data_type)

    def get_code_cooccurrence(self, code_name: str) -> CodeCooccurrence:
        return self._query.get_code_cooccurrence(code_name)

    def get_memos_by_focus(self, entity_name: str) -> MemosByFocus:
        return self._query.get_memos_by_focus(entity_name)

    def get_methodology_details(self, project_name: str) -> MethodologyDetails:
        return self._query.get_methodology_details(project_name)

    def get_related_entities(
        self,
        entity_name: str,
        relation_types: list[str] | None = None,
    ) -> RelatedEntities:
        return self._query.get_related_entities(entity_name, relation_types)
