"""Read-only query operations on the research graph.

Separated from engine.py so reads and mutations live apart.
ResearchGraphEngine delegates all query methods to QueryService via thin
wrappers. Each call performs exactly one load.
"""

import logging
from typing import Callable

from . import views
from .models import KnowledgeGraph
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

logger = logging.getLogger(__name__)


def matches_terms(entity, terms: list[str]) -> bool:
    """True if every term occurs in the name, the type or a single observation."""
    name = entity.name.lower()
    entity_type = entity.entity_type.lower()
    observations = [obs.lower() for obs in entity.observations]

    for term in terms:
        if term in name or term in entity_type:
            continue
        if any(term in obs for obs in observations):
            continue
        return False
    return True


class QueryService:
    """Read-only query operations on the research graph.

    Takes a loader callable so every call sees the persisted state, not a
    stale copy. Does not import from engine.py to avoid circular imports.
    """

    def __init__(self, load: Callable[[], KnowledgeGraph]):
        self._load = load

    def _state(self) -> GraphState:
        return GraphState.from_graph(self._load())

    # --- Graph reads ---

    def read_graph(self) -> KnowledgeGraph:
        """Return the full graph."""
        return self._load()

    def search_nodes(self, query: str) -> KnowledgeGraph:
        """Whitespace-separated, case-insensitive AND search.

        An entity matches when every term is a substring of its name, its
        type, or one of its observations. Returns the induced subgraph in
        insertion order. A blank query matches every entity.
        """
        state = self._state()
        terms = query.lower().split()
        names = [e.name for e in state.entities if matches_terms(e, terms)]
        logger.debug(f"search_nodes({query!r}) matched {len(names)} entities")
        return state.induced_subgraph(names)

    def open_nodes(self, names: list[str]) -> KnowledgeGraph:
        """Exact-name lookup; unknown names are ignored."""
        return self._state().induced_subgraph(names)

    # --- Analytical views ---

    def get_project_overview(self, project_name: str) -> ProjectOverview:
        return views.project_overview(self._state(), project_name)

    def get_participant_profile(self, participant_name: str) -> ParticipantProfile:
        return views.participant_profile(self._state(), participant_name)

    def get_thematic_analysis(self, project_name: str) -> ThematicAnalysis:
        return views.thematic_analysis(self._state(), project_name)

    def get_coded_data(self, code_name: str) -> CodedData:
        return views.coded_data(self._state(), code_name)

    def get_research_question_analysis(self, project_name: str) -> ResearchQuestionAnalysis:
        return views.research_question_analysis(self._state(), project_name)

    def get_chronological_data(self, project_name: str, data_type: str | None = None) -> ChronologicalData:
        return views.chronological_data(self._state(), project_name, data_type)

    def get_code_cooccurrence(self, code_name: str) -> CodeCooccurrence:
        return views.code_cooccurrence(self._state(), code_name)

    def get_memos_by_focus(self, entity_name: str) -> MemosByFocus:
        return views.memos_by_focus(self._state(), entity_name)

    def get_methodology_details(self, project_name: str) -> MethodologyDetails:
        return views.methodology_details(self._state(), project_name)

    def get_related_entities(
        self,
        entity_name: str,
        relation_types: list[str] | None = None,
    ) -> RelatedEntities:
        return views.related_entities(self._state(), entity_name, relation_types)
