"""MCP server for the qualitative research graph."""

import asyncio
import json
import logging
import sys
import traceback
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool

from .config import load_settings
from .constants import PRIORITY_VALUES, STATUS_VALUES, VALID_ENTITY_TYPES, VALID_RELATION_TYPES
from .context import render_context, render_session_start
from .engine import ResearchGraphEngine
from .errors import ValidationError
from .models import dump_all
from .sessions import STAGES, EndSessionRequest, SessionStore, end_session, generate_session_id
from .state import GraphState

logger = logging.getLogger("qualigraph")

GRAPH_RESOURCE_URI = "graph://researcher/qualitative"


def configure_logging(log_file: Path) -> None:
    """Log to a file next to the graph and to stderr (stdout carries MCP traffic)."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stderr),
        ],
    )


# ─────────────────────────────────────────────────────────────────────────────
# Tool definitions
# ─────────────────────────────────────────────────────────────────────────────


class AdvancedKind(str, Enum):
    GRAPH = "graph"
    SEARCH = "search"
    NODES = "nodes"
    PROJECT = "project"
    PARTICIPANT = "participant"
    THEMATIC = "thematic"
    CODED = "coded"
    QUESTIONS = "questions"
    CHRONOLOGY = "chronology"
    COOCCURRENCE = "cooccurrence"
    MEMOS = "memos"
    METHODOLOGY = "methodology"
    RELATED = "related"
    STATUS = "status"
    PRIORITY = "priority"
    SET_STATUS = "set_status"
    SET_PRIORITY = "set_priority"


CONTEXT_OPERATION_TYPES = ["entities", "relations", "observations"]


def list_tool_definitions() -> list[Tool]:
    return [
        Tool(
            name="startsession",
            description=(
                "Start a new qualitative research session. Returns a session ID plus recent "
                "sessions, projects, sample participants, top codes and recent memos so the "
                "user can choose what to focus on."
            ),
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="loadcontext",
            description=(
                "Load markdown context for an entity (project, participant, interview, code, "
                "theme, memo, researchQuestion, or any other type). Records the load in the "
                "session when a sessionId is given."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "entityName": {"type": "string", "description": "Exact entity name"},
                    "entityType": {
                        "type": "string",
                        "description": "Context flavour; defaults to the entity's own type",
                    },
                    "sessionId": {"type": "string", "description": "ID from startsession"},
                },
                "required": ["entityName"],
            },
        ),
        Tool(
            name="buildcontext",
            description=(
                "Create entities, relations, or observations. Existing names, duplicate "
                "relations and repeated observations are skipped. "
                f"Entity types: {', '.join(VALID_ENTITY_TYPES)}. "
                f"Relation types: {', '.join(VALID_RELATION_TYPES)}."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": CONTEXT_OPERATION_TYPES},
                    "data": {
                        "description": (
                            "entities: [{name, entityType, observations}], "
                            "relations: [{from, to, relationType}], "
                            "observations: [{entityName, contents}]"
                        ),
                    },
                },
                "required": ["type", "data"],
            },
        ),
        Tool(
            name="deletecontext",
            description=(
                "Delete entities (with their relations), relations, or observations. "
                "Unknown names are ignored."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": CONTEXT_OPERATION_TYPES},
                    "data": {
                        "description": (
                            "entities: [name, ...], "
                            "relations: [{from, to, relationType}], "
                            "observations: [{entityName, observations}]"
                        ),
                    },
                },
                "required": ["type", "data"],
            },
        ),
        Tool(
            name="advancedcontext",
            description=(
                "Read the graph and run analytical views: search, open nodes, project overview, "
                "participant profile, thematic analysis, coded data, research questions, "
                "chronology, code co-occurrence, memos, methodology, related entities, and "
                "status/priority get/set. "
                f"Status values: {', '.join(STATUS_VALUES)}. "
                f"Priority values: {', '.join(PRIORITY_VALUES)}."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": [k.value for k in AdvancedKind]},
                    "params": {
                        "type": "object",
                        "description": (
                            "search: {query}; nodes: {names}; project/thematic/questions/"
                            "methodology: {projectName}; chronology: {projectName, dataType?}; "
                            "participant: {participantName}; coded/cooccurrence: {codeName}; "
                            "memos: {entityName}; related: {entityName, relationTypes?}; "
                            "status/priority: {entityName}; set_status: {entityName, status}; "
                            "set_priority: {entityName, priority}"
                        ),
                    },
                },
                "required": ["type"],
            },
        ),
        Tool(
            name="endsession",
            description=(
                "Record the end of a research session in stages "
                f"({', '.join(STAGES)}). Only use this tool if the user asks for it."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sessionId": {"type": "string"},
                    "stage": {"type": "string", "enum": list(STAGES)},
                    "stageNumber": {"type": "integer", "minimum": 1},
                    "totalStages": {"type": "integer", "minimum": 1},
                    "analysis": {"type": "string"},
                    "stageData": {"description": "Stage-specific data"},
                    "nextStageNeeded": {"type": "boolean"},
                    "isRevision": {"type": "boolean"},
                    "revisesStage": {"type": "integer", "minimum": 1},
                },
                "required": ["sessionId", "stage", "stageNumber", "totalStages", "nextStageNeeded"],
            },
        ),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Tool handlers
# ─────────────────────────────────────────────────────────────────────────────


def _success(**payload: Any) -> str:
    return json.dumps({"success": True, **payload}, indent=2, default=str)


def _failure(message: str) -> str:
    return json.dumps({"success": False, "error": message}, indent=2)


def _normalize_additions(data: Any) -> list[dict]:
    """Accept one addition or a list; `observations` is an alias for `contents`."""
    items = data if isinstance(data, list) else [data]
    normalized = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError(f"Invalid observation addition: {item!r}")
        contents = item.get("contents")
        if contents is None:
            contents = item.get("observations", [])
        normalized.append({"entityName": item.get("entityName"), "contents": contents})
    return normalized


def build_context(engine: ResearchGraphEngine, kind: str, data: Any) -> str:
    if kind == "entities":
        return _success(created=dump_all(engine.create_entities(data)))
    elif kind == "relations":
        return _success(created=dump_all(engine.create_relations(data)))
    elif kind == "observations":
        return _success(added=dump_all(engine.add_observations(_normalize_additions(data))))
    raise ValidationError(
        f"Invalid type: {kind}. Must be 'entities', 'relations', or 'observations'."
    )


def delete_context(engine: ResearchGraphEngine, kind: str, data: Any) -> str:
    if kind == "entities":
        deleted = engine.delete_entities(data)
        return _success(deleted=deleted, message=f"Deleted {len(deleted)} entities")
    elif kind == "relations":
        deleted = engine.delete_relations(data)
        return _success(deleted=dump_all(deleted), message=f"Deleted {len(deleted)} relations")
    elif kind == "observations":
        deleted = engine.delete_observations(data)
        return _success(
            deleted=dump_all(deleted),
            message=f"Deleted observations from {len(deleted)} entities",
        )
    raise ValidationError(
        f"Invalid type: {kind}. Must be 'entities', 'relations', or 'observations'."
    )


ADVANCED_HANDLERS: dict[AdvancedKind, Callable[[ResearchGraphEngine, dict], dict]] = {
    AdvancedKind.GRAPH: lambda e, p: {"graph": e.read_graph().to_json_dict()},
    AdvancedKind.SEARCH: lambda e, p: {"results": e.search_nodes(p["query"]).to_json_dict()},
    AdvancedKind.NODES: lambda e, p: {"nodes": e.open_nodes(p["names"]).to_json_dict()},
    AdvancedKind.PROJECT: lambda e, p: {
        "project": e.get_project_overview(p["projectName"]).to_json_dict()
    },
    AdvancedKind.PARTICIPANT: lambda e, p: {
        "participant": e.get_participant_profile(p["participantName"]).to_json_dict()
    },
    AdvancedKind.THEMATIC: lambda e, p: {
        "thematicAnalysis": e.get_thematic_analysis(p["projectName"]).to_json_dict()
    },
    AdvancedKind.CODED: lambda e, p: {
        "codedData": e.get_coded_data(p["codeName"]).to_json_dict()
    },
    AdvancedKind.QUESTIONS: lambda e, p: {
        "researchQuestions": e.get_research_question_analysis(p["projectName"]).to_json_dict()
    },
    AdvancedKind.CHRONOLOGY: lambda e, p: {
        "chronology": e.get_chronological_data(p["projectName"], p.get("dataType")).to_json_dict()
    },
    AdvancedKind.COOCCURRENCE: lambda e, p: {
        "cooccurrence": e.get_code_cooccurrence(p["codeName"]).to_json_dict()
    },
    AdvancedKind.MEMOS: lambda e, p: {
        "memos": e.get_memos_by_focus(p["entityName"]).to_json_dict()
    },
    AdvancedKind.METHODOLOGY: lambda e, p: {
        "methodology": e.get_methodology_details(p["projectName"]).to_json_dict()
    },
    AdvancedKind.RELATED: lambda e, p: {
        "related": e.get_related_entities(p["entityName"], p.get("relationTypes")).to_json_dict()
    },
    AdvancedKind.STATUS: lambda e, p: {
        "entityName": p["entityName"],
        "status": e.get_entity_status(p["entityName"]),
    },
    AdvancedKind.PRIORITY: lambda e, p: {
        "entityName": p["entityName"],
        "priority": e.get_entity_priority(p["entityName"]),
    },
    AdvancedKind.SET_STATUS: lambda e, p: {
        "relation": e.set_entity_status(p["entityName"], p["status"]).model_dump(by_alias=True),
    },
    AdvancedKind.SET_PRIORITY: lambda e, p: {
        "relation": e.set_entity_priority(p["entityName"], p["priority"]).model_dump(by_alias=True),
    },
}


def advanced_context(engine: ResearchGraphEngine, kind: str, params: dict | None) -> str:
    try:
        advanced_kind = AdvancedKind(kind)
    except ValueError:
        raise ValidationError(
            f"Invalid type: {kind}. Must be one of: {', '.join(k.value for k in AdvancedKind)}"
        ) from None
    return _success(**ADVANCED_HANDLERS[advanced_kind](engine, params or {}))


def start_session(engine: ResearchGraphEngine, sessions: SessionStore) -> str:
    session_id = generate_session_id()
    recent = sessions.recent_sessions()
    sessions.create_session(session_id)
    state = GraphState.from_graph(engine.read_graph())
    return render_session_start(state, session_id, recent)


def load_context(engine: ResearchGraphEngine, sessions: SessionStore, arguments: dict) -> str:
    entity_name = arguments["entityName"]
    entity_type = arguments.get("entityType")
    session_id = arguments.get("sessionId")

    if session_id:
        sessions.record_context_loaded(session_id, entity_name, entity_type)

    state = GraphState.from_graph(engine.read_graph())
    return render_context(state, entity_name, entity_type)


async def handle_tool(
    engine: ResearchGraphEngine,
    sessions: SessionStore,
    name: str,
    arguments: dict | None,
) -> list[TextContent]:
    """Run one tool call; every failure becomes a JSON failure envelope."""
    arguments = arguments or {}
    logger.info(f"Tool call: {name}")
    logger.debug(f"Arguments: {arguments}")
    try:
        if name == "startsession":
            text = start_session(engine, sessions)

        elif name == "loadcontext":
            text = load_context(engine, sessions, arguments)

        elif name == "buildcontext":
            text = build_context(engine, arguments["type"], arguments["data"])

        elif name == "deletecontext":
            text = delete_context(engine, arguments["type"], arguments["data"])

        elif name == "advancedcontext":
            text = advanced_context(engine, arguments["type"], arguments.get("params"))

        elif name == "endsession":
            request = EndSessionRequest.model_validate(arguments)
            text = _success(**end_session(sessions, request))

        else:
            text = _failure(f"Unknown tool: {name}")

    except KeyError as e:
        logger.error(f"Tool {name} missing argument: {e}")
        text = _failure(f"Missing required argument: {e.args[0]}")
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        logger.error(traceback.format_exc())
        text = _failure(str(e))

    return [TextContent(type="text", text=text)]


def build_server(engine: ResearchGraphEngine, sessions: SessionStore) -> Server:
    server = Server("qualigraph")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available MCP tools."""
        return list_tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        """Handle tool calls."""
        return await handle_tool(engine, sessions, name, arguments)

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return [
            Resource(
                uri=GRAPH_RESOURCE_URI,
                name="graph",
                description="The entire qualitative research graph",
                mimeType="application/json",
            )
        ]

    @server.read_resource()
    async def read_resource(uri) -> str:
        if str(uri) != GRAPH_RESOURCE_URI:
            raise ValueError(f"Unknown resource: {uri}")
        return json.dumps(engine.read_graph().to_json_dict(), indent=2, ensure_ascii=False)

    return server


def main():
    """Entry point for the MCP server."""
    settings = load_settings()
    configure_logging(settings.log_file)

    engine = ResearchGraphEngine.from_path(settings.memory_file)
    sessions = SessionStore(settings.sessions_file)
    logger.info(
        f"Qualigraph MCP Server starting (memory={settings.memory_file}, "
        f"sessions={settings.sessions_file})"
    )
    try:
        engine.initialize_status_and_priority()
        graph = engine.read_graph()
        logger.info(f"Loaded {len(graph.entities)} entities, {len(graph.relations)} relations")
        asyncio.run(_run_server(build_server(engine, sessions)))
    except Exception as e:
        logger.error(f"Server crashed: {e}")
        logger.error(traceback.format_exc())
        raise


async def _run_server(server: Server):
    """Run the MCP server."""
    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


if __name__ == "__main__":
    main()
