"""Analytical views over a research graph.

Every view is a pure function of a ``GraphState`` plus its parameters. The
root entity must exist (and have the view's type, where the view is
type-specific), otherwise ``NotFoundError``. Missing sub-data is an empty
list, never an error.

Relation conventions the views rely on:

    participant --participated_in--> interview | observation
    X           --part_of----------> project
    code        --codes------------> quote
    codeGroup   --contains---------> code
    source      --contains---------> quote
    quote       --contains---------> participant
    code        --supports---------> theme
    X           --answers----------> researchQuestion
    memo        --reflects_on------> X
    project     --cites------------> literature
"""

import logging
from datetime import datetime

from .constants import (
    DATA_SOURCE_TYPES,
    CHRONOLOGY_DATE_PREFIXES,
    DEMOGRAPHIC_KEYWORDS,
    HAS_STATUS,
    MEMO_DATE_PREFIXES,
    METHODOLOGY_KEYWORDS,
    METHODOLOGY_MEMO_KEYWORDS,
    OVERVIEW_METHODOLOGY_KEYWORDS,
    UNKNOWN_STATUS,
)
from .models import Entity
from .observations import (
    matching_observations,
    mentions_any,
    observation_status,
    prefixed_value,
)
from .reports import (
    AnalysisSummary,
    ChronologicalData,
    CodeCooccurrence,
    CodedData,
    CodeQuotes,
    CooccurringCode,
    DataCollectionCounts,
    DataCollectionSummary,
    MemosByFocus,
    MethodologyDetails,
    ParticipantProfile,
    ProjectOverview,
    QuestionAnalysis,
    RelatedEntities,
    ResearchQuestionAnalysis,
    ThemeAnalysis,
    ThematicAnalysis,
    TimelineItem,
)
from .state import GraphState
from .timeutil import EPOCH, parse_date_or_epoch, parse_date_or_none

logger = logging.getLogger(__name__)


def _require_project(state: GraphState, project_name: str) -> Entity:
    return state.require_entity(project_name, "project", label="Project")


def theme_status(state: GraphState, theme: Entity) -> str:
    """Status of a theme: has_status edge, then legacy "Status:" observation."""
    status = state.linked_value(theme.name, HAS_STATUS)
    if status is not None:
        return status
    status = observation_status(theme.observations)
    if status is not None:
        return status
    return UNKNOWN_STATUS


# ─────────────────────────────────────────────────────────────────────────────
# Project views
# ─────────────────────────────────────────────────────────────────────────────


def project_overview(state: GraphState, project_name: str) -> ProjectOverview:
    """Everything attached to a project via part_of, bucketed by type."""
    project = _require_project(state, project_name)

    participants = state.part_of(project_name, "participant")
    interviews = state.part_of(project_name, "interview")
    observations = state.part_of(project_name, "observation")
    documents = state.part_of(project_name, "document")
    themes = state.part_of(project_name, "theme")

    return ProjectOverview(
        project=project,
        research_questions=state.part_of(project_name, "researchQuestion"),
        methodology=matching_observations(project.observations, OVERVIEW_METHODOLOGY_KEYWORDS),
        data_collection=DataCollectionSummary(
            participants=len(participants),
            interviews=len(interviews),
            observations=len(observations),
            documents=len(documents),
            participants_list=participants,
            interviews_list=interviews,
            observations_list=observations,
            documents_list=documents,
        ),
        analysis=AnalysisSummary(themes=len(themes), themes_list=themes),
        findings=state.part_of(project_name, "finding"),
    )


def thematic_analysis(state: GraphState, project_name: str) -> ThematicAnalysis:
    """Themes of a project with their supporting codes, quotes and memos."""
    project = _require_project(state, project_name)

    analyses = []
    for theme in state.part_of(project_name, "theme"):
        codes = state.sources(theme.name, "supports", "code")
        supporting = [
            CodeQuotes(code=code, quotes=state.targets(code.name, "codes", "quote"))
            for code in codes
        ]
        analyses.append(ThemeAnalysis(
            theme=theme,
            status=theme_status(state, theme),
            supporting_data=supporting,
            codes=codes,
            memos=state.sources(theme.name, "reflects_on", "memo"),
        ))

    return ThematicAnalysis(project=project, themes=analyses)


def research_question_analysis(state: GraphState, project_name: str) -> ResearchQuestionAnalysis:
    """Per research question: the findings, themes and quotes that answer it."""
    project = _require_project(state, project_name)

    questions = []
    for question in state.part_of(project_name, "researchQuestion"):
        questions.append(QuestionAnalysis(
            question=question,
            findings=state.sources(question.name, "answers", "finding"),
            themes=state.sources(question.name, "answers", "theme"),
            quotes=state.sources(question.name, "answers", "quote"),
        ))

    return ResearchQuestionAnalysis(project=project, research_questions=questions)


def chronological_data(
    state: GraphState,
    project_name: str,
    data_type: str | None = None,
) -> ChronologicalData:
    """Data-collection entities of a project in date order.

    The date comes from the first observation starting with "Date:",
    "Collected on:" or "Created:". Undated or unparsable items sort as the
    epoch, i.e. first. Ties keep part_of order.
    """
    project = _require_project(state, project_name)

    entity_types = data_type if data_type else DATA_SOURCE_TYPES
    dated = [
        (parse_date_or_epoch(prefixed_value(entity.observations, CHRONOLOGY_DATE_PREFIXES)), entity)
        for entity in state.part_of(project_name, entity_types)
    ]
    dated.sort(key=lambda item: item[0])

    timeline = [
        TimelineItem(
            date=date,
            entity=entity,
            quotes=state.targets(entity.name, "contains", "quote"),
        )
        for date, entity in dated
    ]
    return ChronologicalData(project=project, timeline=timeline)


def methodology_details(state: GraphState, project_name: str) -> MethodologyDetails:
    """Method-related observations, memos, data counts and cited literature."""
    project = _require_project(state, project_name)

    memos = [
        memo for memo in state.sources(project_name, "reflects_on", "memo")
        if any(mentions_any(obs, METHODOLOGY_MEMO_KEYWORDS) for obs in memo.observations)
    ]

    return MethodologyDetails(
        project=project,
        methodology=matching_observations(project.observations, METHODOLOGY_KEYWORDS),
        data_collection=DataCollectionCounts(
            participants=len(state.part_of(project_name, "participant")),
            interviews=len(state.part_of(project_name, "interview")),
            observations=len(state.part_of(project_name, "observation")),
            documents=len(state.part_of(project_name, "document")),
        ),
        memos=memos,
        literature=state.targets(project_name, "cites", "literature"),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Participant and code views
# ─────────────────────────────────────────────────────────────────────────────


def participant_profile(state: GraphState, participant_name: str) -> ParticipantProfile:
    participant = state.require_entity(participant_name, "participant", label="Participant")

    return ParticipantProfile(
        participant=participant,
        demographics=matching_observations(participant.observations, DEMOGRAPHIC_KEYWORDS),
        interviews=state.targets(participant_name, "participated_in", "interview"),
        observations=state.targets(participant_name, "participated_in", "observation"),
        quotes=state.sources(participant_name, "contains", "quote"),
        memos=state.sources(participant_name, "reflects_on", "memo"),
    )


def coded_data(state: GraphState, code_name: str) -> CodedData:
    """Everything hanging off a code: groups, quotes, their sources, themes, memos."""
    code = state.require_entity(code_name, "code", label="Code")
    quotes = state.targets(code_name, "codes", "quote")

    # A quote's sources are whatever else "contains" it; first sighting wins
    sources: dict[str, Entity] = {}
    for quote in quotes:
        for rel in state.get_incoming_relations(quote.name, "contains"):
            if rel.from_entity == code_name:
                continue
            source = state.get_entity(rel.from_entity)
            if source is not None:
                sources.setdefault(source.name, source)

    return CodedData(
        code=code,
        code_groups=state.sources(code_name, "contains", "codeGroup"),
        quotes=quotes,
        source_count=len(sources),
        sources=list(sources.values()),
        themes=state.targets(code_name, "supports", "theme"),
        memos=state.sources(code_name, "reflects_on", "memo"),
    )


def code_cooccurrence(state: GraphState, code_name: str) -> CodeCooccurrence:
    """Other codes applied to the same quotes as `code_name`.

    Sorted by shared-quote count, highest first. Equal counts keep the order
    in which the other codes were first discovered.
    """
    code = state.require_entity(code_name, "code", label="Code")
    quotes = state.targets(code_name, "codes", "quote")

    occurrences: dict[str, CooccurringCode] = {}
    for quote in quotes:
        for other in state.sources(quote.name, "codes", "code"):
            if other.name == code_name:
                continue
            occurrence = occurrences.get(other.name)
            if occurrence is None:
                occurrence = occurrences[other.name] = CooccurringCode(code=other)
            occurrence.count += 1
            occurrence.quotes.append(quote)

    ranked = sorted(occurrences.values(), key=lambda o: o.count, reverse=True)
    return CodeCooccurrence(code=code, quotes_count=len(quotes), cooccurring_codes=ranked)


# ─────────────────────────────────────────────────────────────────────────────
# Generic views
# ─────────────────────────────────────────────────────────────────────────────


def memos_by_focus(state: GraphState, entity_name: str) -> MemosByFocus:
    """Memos reflecting on any entity, most recent first, undated last."""
    entity = state.require_entity(entity_name)
    memos = state.sources(entity_name, "reflects_on", "memo")
    memos = sorted(memos, key=_memo_sort_key, reverse=True)
    return MemosByFocus(entity=entity, memos=memos)


def _memo_sort_key(memo: Entity) -> tuple[bool, datetime]:
    # Dated memos rank above undated ones whatever the year
    parsed = parse_date_or_none(prefixed_value(memo.observations, MEMO_DATE_PREFIXES))
    return (parsed is not None, parsed or EPOCH)


def related_entities(
    state: GraphState,
    entity_name: str,
    relation_types: list[str] | None = None,
) -> RelatedEntities:
    """Opposite endpoints of every relation touching an entity, grouped by type.

    An empty or missing `relation_types` means no filter.
    """
    entity = state.require_entity(entity_name)

    related: dict[str, list[Entity]] = {}
    for rel in state.get_relations_for(entity_name):
        if relation_types and rel.relation_type not in relation_types:
            continue
        bucket = related.setdefault(rel.relation_type, [])
        other = state.get_entity(rel.other_entity(entity_name))
        if other is not None:
            bucket.append(other)

    logger.debug(f"Related entities for {entity_name}: {sum(len(v) for v in related.values())}")
    return RelatedEntities(entity=entity, related=related)
