"""Research session bookkeeping.

Sessions live in their own JSON file, separate from the graph:

    { "<session id>": [ <record>, ... ], ... }

Records are plain dicts tagged by ``type``: ``context_loaded``,
``analysis_stage`` and ``session_completed``. Stage data is stored and
replayed only; nothing here touches the research graph.
"""

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from ulid import ULID

from .constants import RECENT_SESSIONS_LIMIT, SESSION_ID_PREFIX
from .errors import NotFoundError, StorageError, ValidationError
from .store import read_json, write_json_atomic

logger = logging.getLogger(__name__)

CONTEXT_LOADED = "context_loaded"
ANALYSIS_STAGE = "analysis_stage"
SESSION_COMPLETED = "session_completed"

ASSEMBLY_STAGE = "assembly"

# Stage name -> stageData used when the caller sends none
STAGE_DEFAULTS: dict[str, dict] = {
    "summary": {"summary": "", "duration": "", "project": ""},
    "interviewData": {"interviews": []},
    "memos": {"memos": []},
    "codingActivity": {"codes": []},
    "themes": {"themes": []},
    "projectStatus": {"projectStatus": "", "projectObservation": ""},
}

STAGES: tuple[str, ...] = (*STAGE_DEFAULTS, ASSEMBLY_STAGE)


def generate_session_id() -> str:
    """Generate a sortable, unique session ID."""
    return f"{SESSION_ID_PREFIX}{ULID()}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionStore:
    """Session records persisted as one JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict[str, list[dict]]:
        data = read_json(self.path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StorageError(f"Session file {self.path} must contain a JSON object")
        return data

    def save(self, sessions: dict[str, list[dict]]) -> None:
        write_json_atomic(self.path, sessions)
        logger.debug(f"Saved {len(sessions)} sessions to {self.path}")

    def create_session(self, session_id: str) -> None:
        sessions = self.load()
        sessions.setdefault(session_id, [])
        self.save(sessions)
        logger.info(f"Started session {session_id}")

    def get(self, session_id: str) -> list[dict] | None:
        return self.load().get(session_id)

    def record(self, session_id: str, record: dict) -> None:
        """Append a record, creating the session if it is unknown."""
        sessions = self.load()
        if session_id not in sessions:
            logger.warning(f"Session {session_id} not found, creating it")
        sessions.setdefault(session_id, []).append(record)
        self.save(sessions)

    def record_context_loaded(self, session_id: str, entity_name: str, entity_type: str | None) -> None:
        self.record(session_id, {
            "type": CONTEXT_LOADED,
            "timestamp": utc_timestamp(),
            "entityName": entity_name,
            "entityType": entity_type,
        })

    def recent_sessions(self, limit: int = RECENT_SESSIONS_LIMIT) -> list[dict]:
        """Sessions that recorded a summary stage, newest first."""
        recent = []
        for session_id, records in self.load().items():
            summary = _find_stage(records, "summary")
            if summary is None:
                continue
            data = summary.get("stageData") or {}
            recent.append({
                "id": session_id,
                "date": data.get("date") or _last_timestamp(records) or "Unknown date",
                "project": data.get("project") or "Unknown project",
                "summary": data.get("summary") or "No summary available",
            })
        recent.sort(key=lambda s: s["date"], reverse=True)
        return recent[:limit]


def _find_stage(records: list[dict], stage: str) -> dict | None:
    for record in records:
        if record.get("stage") == stage:
            return record
    return None


def _last_timestamp(records: list[dict]) -> str | None:
    stamps = [r["timestamp"][:10] for r in records if r.get("timestamp")]
    return max(stamps) if stamps else None


# ─────────────────────────────────────────────────────────────────────────────
# End-session stages
# ─────────────────────────────────────────────────────────────────────────────


class EndSessionRequest(BaseModel):
    """One call of the staged endsession workflow."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    stage: str
    stage_number: int = Field(gt=0)
    total_stages: int = Field(gt=0)
    analysis: str | None = None
    stage_data: Any = None
    next_stage_needed: bool
    is_revision: bool = False
    revises_stage: int | None = Field(default=None, gt=0)


def assemble_end_session_args(stages: list[dict], today: date | None = None) -> dict:
    """Compile the recorded stages into the final end-session arguments.

    List-valued stage data is carried as JSON strings.
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    def data(stage: str) -> dict:
        record = _find_stage(stages, stage)
        value = record.get("stageData") if record else None
        return value if isinstance(value, dict) else {}

    summary = data("summary")
    status = data("projectStatus")
    return {
        "date": today.isoformat(),
        "summary": summary.get("summary") or "",
        "duration": summary.get("duration") or "unknown",
        "project": summary.get("project") or "",
        "interviewData": json.dumps(data("interviewData").get("interviews") or []),
        "newMemos": json.dumps(data("memos").get("memos") or []),
        "codingActivity": json.dumps(data("codingActivity").get("codes") or []),
        "newThemes": json.dumps(data("themes").get("themes") or []),
        "projectStatus": status.get("projectStatus") or "",
        "projectObservation": status.get("projectObservation") or "",
    }


def process_stage(request: EndSessionRequest, previous_stages: list[dict], today: date | None = None) -> dict:
    """Turn one endsession call into a stage record.

    Raises ValidationError for an unknown stage name.
    """
    if request.stage == ASSEMBLY_STAGE:
        return {
            "stage": ASSEMBLY_STAGE,
            "stageNumber": request.stage_number,
            "analysis": "Final assembly of end-session arguments",
            "stageData": assemble_end_session_args(previous_stages, today),
            "completed": True,
        }

    if request.stage not in STAGE_DEFAULTS:
        raise ValidationError(
            f"Unknown stage: {request.stage}. Must be one of: {', '.join(STAGES)}"
        )

    stage_data = request.stage_data
    if stage_data is None:
        stage_data = dict(STAGE_DEFAULTS[request.stage])
    return {
        "stage": request.stage,
        "stageNumber": request.stage_number,
        "analysis": request.analysis or "",
        "stageData": stage_data,
        "completed": not request.next_stage_needed,
    }


def _apply_stage(records: list[dict], stage_record: dict, request: EndSessionRequest) -> list[dict]:
    """Append a stage record, or replace the N-th stage for a revision."""
    entry = {"type": ANALYSIS_STAGE, **stage_record}
    if not (request.is_revision and request.revises_stage):
        return [*records, entry]

    positions = [i for i, r in enumerate(records) if r.get("type") == ANALYSIS_STAGE]
    if request.revises_stage > len(positions):
        return [*records, entry]
    records = list(records)
    records[positions[request.revises_stage - 1]] = entry
    return records


def _items(raw: str) -> list:
    try:
        value = json.loads(raw) if raw else []
    except json.JSONDecodeError as e:
        raise ValidationError(f"Error assembling end-session arguments: {e}") from e
    return value if isinstance(value, list) else []


def _get(item: Any, key: str, default: str = "") -> str:
    if isinstance(item, dict):
        return str(item.get(key) or default)
    return str(item) if key in ("name", "topic", "participant") else default


def render_session_summary(args: dict) -> str:
    """Markdown recap of an assembled session."""
    interviews = _items(args.get("interviewData", ""))
    memos = _items(args.get("newMemos", ""))
    coding = _items(args.get("codingActivity", ""))
    themes = _items(args.get("newThemes", ""))
    project = args.get("project", "")

    sections = [
        f"# Qualitative Research Session Recorded\n\n"
        f"I've recorded your research session from {args.get('date', '')} "
        f"focusing on the {project} project.",
        f"## Session Summary\n{args.get('summary', '')}",
    ]

    if interviews:
        lines = []
        for i in interviews:
            when = f" on {_get(i, 'date')}" if _get(i, "date") else ""
            lines.append(f"- Interview with {_get(i, 'participant')}{when}")
        sections.append("## Interviews Conducted\n" + "\n".join(lines))
    else:
        sections.append("No interviews were recorded.")

    if memos:
        sections.append("## Research Memos Created\n" + "\n".join(
            f"- {_get(m, 'topic') or _get(m, 'title')}" for m in memos
        ))
    else:
        sections.append("No memos were created.")

    if coding:
        lines = []
        for c in coding:
            note = f": {_get(c, 'note')}" if _get(c, "note") else ""
            lines.append(f'- Coded {_get(c, "dataItem")} with "{_get(c, "code")}"{note}')
        sections.append("## Coding Activity\n" + "\n".join(lines))
    else:
        sections.append("No coding was performed.")

    if themes:
        sections.append("## Themes Identified\n" + "\n".join(
            f"- {_get(t, 'name')}: {_get(t, 'description')}" for t in themes
        ))
    else:
        sections.append("No themes were identified.")

    sections.append(
        f"## Project Status\nProject {project} has been updated to: {args.get('projectStatus', '')}"
    )
    return "\n\n".join(sections)


def end_session(store: SessionStore, request: EndSessionRequest, today: date | None = None) -> dict:
    """Record one endsession stage and report the outcome.

    Raises NotFoundError for an unknown session and ValidationError for an
    unknown stage. The returned dict carries camelCase keys for the tool
    response.
    """
    sessions = store.load()
    if request.session_id not in sessions:
        raise NotFoundError(
            f"Session with ID {request.session_id} not found. "
            "Please start a new session with startsession."
        )

    records = sessions[request.session_id]
    stages = [r for r in records if r.get("type") == ANALYSIS_STAGE]
    stage_record = process_stage(request, stages, today)
    records = _apply_stage(records, stage_record, request)

    finished = request.stage == ASSEMBLY_STAGE and not request.next_stage_needed
    if finished:
        args = stage_record["stageData"]
        summary_message = render_session_summary(args)
        records.append({
            "type": SESSION_COMPLETED,
            "timestamp": utc_timestamp(),
            "project": args["project"],
        })

    sessions[request.session_id] = records
    store.save(sessions)
    logger.info(
        f"Session {request.session_id}: recorded stage {request.stage_number}/{request.total_stages} "
        f"({request.stage})"
    )

    if finished:
        return {
            "stageCompleted": request.stage,
            "nextStageNeeded": False,
            "stageResult": stage_record,
            "sessionRecorded": True,
            "summaryMessage": summary_message,
        }
    return {
        "stageCompleted": request.stage,
        "nextStageNeeded": request.next_stage_needed,
        "stageResult": stage_record,
        "endSessionArgs": stage_record["stageData"] if request.stage == ASSEMBLY_STAGE else None,
    }
