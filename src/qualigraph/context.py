"""Markdown context rendering for the loadcontext / startsession tools.

One renderer per ``ContextKind``; every entity type without a dedicated
renderer falls back to GENERIC. Renderers are pure functions of a
``GraphState`` so one context load is one store read.
"""

import logging
from collections.abc import Callable
from enum import Enum

from . import views
from .constants import (
    HAS_STATUS,
    QUESTION_QUOTES_LIMIT,
    RECENT_INTERVIEWS_LIMIT,
    RECENT_MEMOS_LIMIT,
    SAMPLE_PARTICIPANTS_LIMIT,
    SUMMARY_PREVIEW_CHARS,
    THEME_QUOTES_LIMIT,
    TOP_CODES_LIMIT,
    TOP_COOCCURRING_LIMIT,
)
from .models import Entity
from .observations import observation_status, prefixed_value, untagged
from .state import GraphState

logger = logging.getLogger(__name__)


class ContextKind(str, Enum):
    PROJECT = "project"
    PARTICIPANT = "participant"
    INTERVIEW = "interview"
    CODE = "code"
    THEME = "theme"
    MEMO = "memo"
    RESEARCH_QUESTION = "researchQuestion"
    GENERIC = "generic"

    @classmethod
    def for_entity_type(cls, entity_type: str) -> "ContextKind":
        """Dedicated kind for an entity type, or GENERIC."""
        try:
            kind = cls(entity_type)
        except ValueError:
            return cls.GENERIC
        return kind


# ─────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ─────────────────────────────────────────────────────────────────────────────


def _lines(items: list[str], empty: str) -> str:
    return "\n".join(items) if items else empty


def _preview(text: str | None, empty: str = "No content") -> str:
    if not text:
        return empty
    if len(text) > SUMMARY_PREVIEW_CHARS:
        return text[:SUMMARY_PREVIEW_CHARS] + "..."
    return text


def _field(entity: Entity, label: str, default: str) -> str:
    """Value of a lowercase "label:" observation, e.g. "date:" or "topic:"."""
    value = prefixed_value(entity.observations, f"{label}:")
    return value if value else default


def _status(state: GraphState, entity: Entity, default: str) -> str:
    status = state.linked_value(entity.name, HAS_STATUS)
    if status is None:
        status = observation_status(entity.observations)
    return status or default


def _description(entity: Entity, *skip: str) -> str | None:
    return untagged(entity.observations, tuple(f"{label}:" for label in skip))


def _quote_text(quote: Entity) -> str:
    return _description(quote, "source", "context") or "No text"


def _owning_project(state: GraphState, entity: Entity) -> Entity | None:
    projects = state.targets(entity.name, "part_of", "project")
    return projects[0] if projects else None


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


def render_project(state: GraphState, entity: Entity) -> str:
    overview = views.project_overview(state, entity.name)
    thematic = views.thematic_analysis(state, entity.name)
    questions = views.research_question_analysis(state, entity.name)
    methodology = views.methodology_details(state, entity.name)

    questions_text = []
    for qa in questions.research_questions:
        findings = [f"  - {f.name}" for f in qa.findings] or ["  - No findings yet"]
        questions_text.append(f"- **{qa.question.name}**\n" + "\n".join(findings))

    themes_text = [
        f"- **{t.theme.name}** (Status: {t.status}): {len(t.supporting_data)} codes"
        for t in thematic.themes
    ]

    interviews_text = []
    for interview in overview.data_collection.interviews_list[:RECENT_INTERVIEWS_LIMIT]:
        participant = _field(interview, "participant", "Unknown")
        date = _field(interview, "date", "Unknown date")
        interviews_text.append(f"- **{interview.name}** with {participant} ({date})")

    findings_text = [
        f"- **{f.name}** ({_status(state, f, 'preliminary')}): "
        f"{_description(f, 'status', 'created') or 'No description'}"
        for f in overview.findings
    ]

    counts = overview.data_collection
    return f"""# Qualitative Research Project Context: {entity.name}

## Project Details
- **Status**: {_status(state, entity, "Unknown")}
- **Last Updated**: {_field(entity, "updated", "Unknown")}
- **Description**: {_description(entity, "status", "updated") or "No description available"}

## Research Design
{_lines([f"- {m}" for m in methodology.methodology], "No methodology details available")}

## Research Questions
{_lines(questions_text, "No research questions found")}

## Data Collection Stats
- **Participants**: {counts.participants}
- **Interviews**: {counts.interviews}
- **Observations**: {counts.observations}
- **Documents**: {counts.documents}

## Recent Interviews
{_lines(interviews_text, "No recent interviews")}

## Analysis Progress
### Themes
{_lines(themes_text, "No themes identified yet")}

## Findings
{_lines(findings_text, "No findings recorded yet")}"""


def render_participant(state: GraphState, entity: Entity) -> str:
    profile = views.participant_profile(state, entity.name)

    quotes_text = [
        f'- "{_quote_text(q)}" (Source: {_field(q, "source", "Unknown source")})'
        for q in profile.quotes
    ]
    memos_text = [
        f'- **{_field(m, "topic", "Untitled")}** ({_field(m, "date", "Unknown date")})'
        for m in profile.memos
    ]

    return f"""# Participant Context: {entity.name}

## Demographics
{_lines([f"- {d}" for d in profile.demographics], "No demographic information available")}

## Interviews
{_lines([f'- **{i.name}** ({_field(i, "date", "Unknown date")})' for i in profile.interviews], "No interviews recorded")}

## Observations
{_lines([f'- **{o.name}** ({_field(o, "date", "Unknown date")})' for o in profile.observations], "No observations recorded")}

## Quotes
{_lines(quotes_text, "No quotes recorded")}

## Research Memos
{_lines(memos_text, "No memos about this participant")}"""


def render_interview(state: GraphState, entity: Entity) -> str:
    project = _owning_project(state, entity)
    participants = state.sources(entity.name, "participated_in", "participant")
    if participants:
        participant = ", ".join(p.name for p in participants)
    else:
        participant = _field(entity, "participant", "Unknown")

    quotes = state.targets(entity.name, "contains", "quote")

    # Codes reach an interview through the quotes it contains
    applied: dict[str, Entity] = {}
    quotes_text = []
    for quote in quotes:
        codes = state.sources(quote.name, "codes", "code")
        for code in codes:
            applied.setdefault(code.name, code)
        suffix = f" [Codes: {', '.join(c.name for c in codes)}]" if codes else ""
        quotes_text.append(f'- "{_quote_text(quote)}"{suffix}')

    codes_text = [
        f"- **{code.name}**: {_description(code, 'status', 'created') or 'No definition'}"
        for code in applied.values()
    ]

    return f"""# Interview Context: {entity.name}

## Interview Details
- **Project**: {project.name if project else "Unknown project"}
- **Participant**: {participant}
- **Date**: {_field(entity, "date", "Unknown date")}

## Transcript
{_description(entity, "participant", "date") or "No transcript available"}

## Applied Codes
{_lines(codes_text, "No codes applied yet")}

## Notable Quotes
{_lines(quotes_text, "No quotes extracted")}"""


def render_code(state: GraphState, entity: Entity) -> str:
    coded = views.coded_data(state, entity.name)
    cooccurrence = views.code_cooccurrence(state, entity.name)

    groups_text = [
        f"- **{g.name}**: {_description(g, 'created') or 'No description'}"
        for g in coded.code_groups
    ]
    themes_text = [
        f"- **{t.name}**: {_description(t, 'status', 'created') or 'No description'}"
        for t in coded.themes
    ]
    cooccurring_text = [
        f"- **{c.code.name}** ({c.count} co-occurrences)"
        for c in cooccurrence.cooccurring_codes[:TOP_COOCCURRING_LIMIT]
    ]
    quotes_text = [
        f'- "{_quote_text(q)}" (Source: {_field(q, "source", "Unknown source")})'
        for q in coded.quotes
    ]

    return f"""# Code Context: {entity.name}

## Code Details
- **Definition**: {_description(entity, "status", "created") or "No definition provided"}
- **Created**: {_field(entity, "created", "Unknown")}
- **Status**: {_status(state, entity, "active")}
- **Items Coded**: {len(coded.quotes)}

## Part of Code Groups
{_lines(groups_text, "Not part of any code groups")}

## Supporting Themes
{_lines(themes_text, "Not associated with any themes")}

## Top Co-occurring Codes
{_lines(cooccurring_text, "No code co-occurrence data")}

## Example Quotes
{_lines(quotes_text, "No quotes tagged with this code")}

## Used in These Sources
{_lines([f"- **{s.name}** ({s.entity_type})" for s in coded.sources], "No sources found")}"""


def render_theme(state: GraphState, entity: Entity) -> str:
    project = _owning_project(state, entity)
    header = f"""# Theme Context: {entity.name}

## Theme Details
- **Description**: {_description(entity, "created", "status") or "No description provided"}
- **Status**: {_status(state, entity, "emerging")}
- **Created**: {_field(entity, "created", "Unknown")}
- **Project**: {project.name if project else "Not associated with a specific project"}"""

    analysis = None
    if project is not None:
        thematic = views.thematic_analysis(state, project.name)
        analysis = next((t for t in thematic.themes if t.theme.name == entity.name), None)
    if analysis is None:
        return header + "\n\nNo detailed analysis available for this theme."

    codes_text = [
        f"- **{c.name}**: {_description(c, 'status', 'created') or 'No definition'}"
        for c in analysis.codes
    ]
    quotes_text = [
        f'- "{_quote_text(q)}" [Code: {data.code.name}]'
        for data in analysis.supporting_data
        for q in data.quotes
    ][:THEME_QUOTES_LIMIT]
    memos_text = [
        f'- **{_field(m, "topic", "Untitled")}** ({_field(m, "date", "Unknown date")}): '
        f'{_preview(_description(m, "date", "topic"))}'
        for m in analysis.memos
    ]

    return header + f"""

## Supporting Codes
{_lines(codes_text, "No supporting codes")}

## Example Supporting Quotes
{_lines(quotes_text, "No supporting quotes")}

## Analytical Memos
{_lines(memos_text, "No analytical memos about this theme")}"""


def render_memo(state: GraphState, entity: Entity) -> str:
    project = _owning_project(state, entity)
    related = state.targets(entity.name, "reflects_on")

    return f"""# Memo Context: {entity.name}

## Memo Details
- **Topic**: {_field(entity, "topic", "Untitled")}
- **Date**: {_field(entity, "date", "Unknown date")}
- **Project**: {project.name if project else "Unknown project"}

## Content
{_description(entity, "topic", "date") or "No content available"}

## Related Entities
{_lines([f"- **{e.name}** ({e.entity_type})" for e in related], "Not specifically linked to any entities")}"""


def render_research_question(state: GraphState, entity: Entity) -> str:
    project = _owning_project(state, entity)
    header = f"""# Research Question Context: {entity.name}

## Question
{_description(entity, "created") or entity.name}

## Project
{project.name if project else "Unknown project"}"""

    analysis = None
    if project is not None:
        questions = views.research_question_analysis(state, project.name)
        analysis = next(
            (q for q in questions.research_questions if q.question.name == entity.name), None
        )
    if analysis is None:
        return header + "\n\nNo analysis data available for this research question."

    findings_text = [
        f"- **{f.name}** ({_status(state, f, 'preliminary')}): "
        f"{_description(f, 'status', 'created') or 'No description'}"
        for f in analysis.findings
    ]
    themes_text = [
        f"- **{t.name}**: {_description(t, 'status', 'created') or 'No description'}"
        for t in analysis.themes
    ]
    quotes_text = [
        f'- "{_quote_text(q)}" (Source: {_field(q, "source", "Unknown source")})'
        for q in analysis.quotes[:QUESTION_QUOTES_LIMIT]
    ]

    return header + f"""

## Findings
{_lines(findings_text, "No findings recorded yet")}

## Related Themes
{_lines(themes_text, "No themes associated with this question")}

## Supporting Quotes
{_lines(quotes_text, "No direct quotes addressing this question")}"""


def render_generic(state: GraphState, entity: Entity) -> str:
    related = views.related_entities(state, entity.name)

    sections = []
    for relation_type, entities in related.related.items():
        listing = "\n".join(f"- **{e.name}** ({e.entity_type})" for e in entities)
        sections.append(f"### {relation_type} ({len(entities)})\n{listing}")
    related_text = "\n\n".join(sections) if sections else "No related entities found"

    return f"""# Entity Context: {entity.name} ({entity.entity_type})

## Observations
{_lines([f"- {obs}" for obs in entity.observations], "No observations")}

## Related Entities
{related_text}"""


RENDERERS: dict[ContextKind, Callable[[GraphState, Entity], str]] = {
    ContextKind.PROJECT: render_project,
    ContextKind.PARTICIPANT: render_participant,
    ContextKind.INTERVIEW: render_interview,
    ContextKind.CODE: render_code,
    ContextKind.THEME: render_theme,
    ContextKind.MEMO: render_memo,
    ContextKind.RESEARCH_QUESTION: render_research_question,
    ContextKind.GENERIC: render_generic,
}


def render_context(state: GraphState, entity_name: str, entity_type: str | None = None) -> str:
    """Render markdown context for an entity.

    `entity_type` selects the renderer and defaults to the entity's own type.
    Raises NotFoundError if the entity does not exist.
    """
    entity = state.require_entity(entity_name)
    kind = ContextKind.for_entity_type(entity_type or entity.entity_type)
    logger.debug(f"Rendering {kind.value} context for {entity_name}")
    return RENDERERS[kind](state, entity)


# ─────────────────────────────────────────────────────────────────────────────
# Session start
# ─────────────────────────────────────────────────────────────────────────────


def render_session_start(state: GraphState, session_id: str, recent_sessions: list[dict]) -> str:
    """Menu shown by startsession: recent sessions plus graph highlights."""
    projects = [e for e in state.entities if e.entity_type == "project"]
    participants = [e for e in state.entities if e.entity_type == "participant"]
    codes = [e for e in state.entities if e.entity_type == "code"]
    memos = [e for e in state.entities if e.entity_type == "memo"]

    def references(code: Entity) -> int:
        value = prefixed_value(code.observations, "references:")
        try:
            return int(value) if value else 0
        except ValueError:
            return 0

    top_codes = sorted(codes, key=references, reverse=True)[:TOP_CODES_LIMIT]
    recent_memos = sorted(
        memos, key=lambda m: _field(m, "created", ""), reverse=True
    )[:RECENT_MEMOS_LIMIT]

    sessions_text = [
        f"- {s['date']}: {s['project']} - {_preview(s['summary'], 'No summary available')}"
        for s in recent_sessions
    ]
    projects_text = [
        f"- **{p.name}** ({_status(state, p, 'Unknown')}, Phase: {_field(p, 'phase', 'Unknown')})"
        for p in projects
    ]
    participants_text = [
        f"- **{p.name}** ({_field(p, 'demographic', 'Unknown')}, "
        f"Status: {_status(state, p, 'Active')})"
        for p in participants[:SAMPLE_PARTICIPANTS_LIMIT]
    ]
    codes_text = [
        f"- **{c.name}** ({references(c)} refs, Group: {_field(c, 'group', 'Uncategorized')})"
        for c in top_codes
    ]
    memos_text = [
        f"- **{m.name}** ({_field(m, 'created', 'Unknown date')}, {_field(m, 'type', 'General')}): "
        f"{_preview(_description(m, 'created', 'type'), 'No summary')}"
        for m in recent_memos
    ]

    return f"""# Ask user to choose what to focus on in this session. Present the following options:

## Session ID
`{session_id}`

## Recent Research Sessions
{_lines(sessions_text, "No recent sessions found.")}

## Research Projects
{_lines(projects_text, "No projects found.")}

## Sample Participants
{_lines(participants_text, "No participants found.")}

## Top Codes
{_lines(codes_text, "No codes found.")}

## Recent Memos
{_lines(memos_text, "No memos found.")}

To load specific context, use the `loadcontext` tool with the entity name and session ID - {session_id}"""
