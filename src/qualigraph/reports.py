"""Result models for the analytical views.

Views return these instead of loose dicts. Field names are snake_case in
Python and camelCase in JSON (``researchQuestions``, ``sourceCount``).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Entity


class Report(BaseModel):
    """Base for view results: camelCase JSON keys, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ─────────────────────────────────────────────────────────────────────────────
# Project-level views
# ─────────────────────────────────────────────────────────────────────────────


class DataCollectionCounts(Report):
    participants: int = 0
    interviews: int = 0
    observations: int = 0
    documents: int = 0


class DataCollectionSummary(DataCollectionCounts):
    """Counts plus the entities behind them."""

    participants_list: list[Entity] = Field(default_factory=list)
    interviews_list: list[Entity] = Field(default_factory=list)
    observations_list: list[Entity] = Field(default_factory=list)
    documents_list: list[Entity] = Field(default_factory=list)


class AnalysisSummary(Report):
    themes: int = 0
    themes_list: list[Entity] = Field(default_factory=list)


class ProjectOverview(Report):
    project: Entity
    research_questions: list[Entity] = Field(default_factory=list)
    methodology: list[str] = Field(default_factory=list)
    data_collection: DataCollectionSummary = Field(default_factory=DataCollectionSummary)
    analysis: AnalysisSummary = Field(default_factory=AnalysisSummary)
    findings: list[Entity] = Field(default_factory=list)


class MethodologyDetails(Report):
    project: Entity
    methodology: list[str] = Field(default_factory=list)
    data_collection: DataCollectionCounts = Field(default_factory=DataCollectionCounts)
    memos: list[Entity] = Field(default_factory=list)
    literature: list[Entity] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Participants
# ─────────────────────────────────────────────────────────────────────────────


class ParticipantProfile(Report):
    participant: Entity
    demographics: list[str] = Field(default_factory=list)
    interviews: list[Entity] = Field(default_factory=list)
    observations: list[Entity] = Field(default_factory=list)
    quotes: list[Entity] = Field(default_factory=list)
    memos: list[Entity] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Themes and codes
# ─────────────────────────────────────────────────────────────────────────────


class CodeQuotes(Report):
    """A supporting code and the quotes it tags."""

    code: Entity
    quotes: list[Entity] = Field(default_factory=list)


class ThemeAnalysis(Report):
    theme: Entity
    status: str
    supporting_data: list[CodeQuotes] = Field(default_factory=list)
    codes: list[Entity] = Field(default_factory=list)
    memos: list[Entity] = Field(default_factory=list)


class ThematicAnalysis(Report):
    project: Entity
    themes: list[ThemeAnalysis] = Field(default_factory=list)


class CodedData(Report):
    code: Entity
    code_groups: list[Entity] = Field(default_factory=list)
    quotes: list[Entity] = Field(default_factory=list)
    source_count: int = 0
    sources: list[Entity] = Field(default_factory=list)
    themes: list[Entity] = Field(default_factory=list)
    memos: list[Entity] = Field(default_factory=list)


class CooccurringCode(Report):
    code: Entity
    count: int = 0
    quotes: list[Entity] = Field(default_factory=list)


class CodeCooccurrence(Report):
    code: Entity
    quotes_count: int = 0
    cooccurring_codes: list[CooccurringCode] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Research questions, timeline, memos, neighbours
# ─────────────────────────────────────────────────────────────────────────────


class QuestionAnalysis(Report):
    question: Entity
    findings: list[Entity] = Field(default_factory=list)
    themes: list[Entity] = Field(default_factory=list)
    quotes: list[Entity] = Field(default_factory=list)


class ResearchQuestionAnalysis(Report):
    project: Entity
    research_questions: list[QuestionAnalysis] = Field(default_factory=list)


class TimelineItem(Report):
    date: datetime
    entity: Entity
    quotes: list[Entity] = Field(default_factory=list)


class ChronologicalData(Report):
    project: Entity
    timeline: list[TimelineItem] = Field(default_factory=list)


class MemosByFocus(Report):
    entity: Entity
    memos: list[Entity] = Field(default_factory=list)


class RelatedEntities(Report):
    """Opposite endpoints of an entity's relations, keyed by relation type."""

    entity: Entity
    related: dict[str, list[Entity]] = Field(default_factory=dict)
