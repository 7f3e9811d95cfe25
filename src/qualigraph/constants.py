"""Centralized constants for qualigraph.

Closed enumerations, observation prefix conventions and keyword lists used
across the engine, analytical views and tool surface.
"""

# ─────────────────────────────────────────────────────────────────────────────
# Entity and relation types
# ─────────────────────────────────────────────────────────────────────────────

VALID_ENTITY_TYPES: tuple[str, ...] = (
    "project",           # overall research study
    "participant",       # research subjects
    "interview",         # formal conversation with participants
    "observation",       # field notes from observational research
    "document",          # external materials being analyzed
    "code",              # labels applied to data segments
    "codeGroup",         # categories or families of related codes
    "memo",              # researcher's analytical notes
    "theme",             # emergent patterns across data
    "quote",             # notable excerpts from data sources
    "literature",        # academic sources
    "researchQuestion",  # formal questions guiding the study
    "finding",           # results or conclusions
    "status",            # reserved: status value singletons
    "priority",          # reserved: priority value singletons
)

VALID_RELATION_TYPES: tuple[str, ...] = (
    "participated_in",    # participant -> interview/observation
    "codes",              # code -> quote
    "contains",           # hierarchy (codeGroup -> code, interview -> quote)
    "supports",           # code -> theme, data -> finding
    "contradicts",
    "answers",            # finding/theme/quote -> researchQuestion
    "cites",              # project -> literature
    "followed_by",        # temporal sequence
    "related_to",
    "reflects_on",        # memo -> anything
    "compares",
    "conducted_by",
    "transcribed_by",
    "part_of",            # anything -> project
    "derived_from",
    "collected_on",
    "analyzes",
    "triangulates_with",
    "has_status",         # reserved: entity -> status:<value>
    "has_priority",       # reserved: entity -> priority:<value>
)

# Data-collection entity types (chronology default, overview buckets)
DATA_SOURCE_TYPES: tuple[str, ...] = ("interview", "observation", "document")

# ─────────────────────────────────────────────────────────────────────────────
# Status / priority
# ─────────────────────────────────────────────────────────────────────────────

STATUS_VALUES: tuple[str, ...] = (
    "active",
    "inactive",
    "planning",
    "data_collection",
    "analysis",
    "writing",
    "scheduled",
    "conducted",
    "transcribed",
    "coded",
    "analyzed",
    "initial",
    "emerging",
    "developing",
    "established",
    "preliminary",
    "draft",
    "revised",
    "final",
    "complete",
)

PRIORITY_VALUES: tuple[str, ...] = ("high", "medium", "low")

STATUS_ENTITY_TYPE = "status"
PRIORITY_ENTITY_TYPE = "priority"
HAS_STATUS = "has_status"
HAS_PRIORITY = "has_priority"

# ─────────────────────────────────────────────────────────────────────────────
# Observation conventions
# ─────────────────────────────────────────────────────────────────────────────

# First matching observation wins, in observation order
CHRONOLOGY_DATE_PREFIXES: tuple[str, ...] = ("Date:", "Collected on:", "Created:")
MEMO_DATE_PREFIXES: tuple[str, ...] = ("Date:", "Created:")
THEME_STATUS_PREFIX = "Status:"

OVERVIEW_METHODOLOGY_KEYWORDS: tuple[str, ...] = ("method", "approach")
METHODOLOGY_KEYWORDS: tuple[str, ...] = (
    "method", "approach", "sampling", "analysis", "validity", "reliability",
)
METHODOLOGY_MEMO_KEYWORDS: tuple[str, ...] = ("method", "approach", "sampling", "analysis")
DEMOGRAPHIC_KEYWORDS: tuple[str, ...] = ("age", "gender", "occupation", "education")

UNKNOWN_STATUS = "unknown"

# ─────────────────────────────────────────────────────────────────────────────
# Storage defaults
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_MEMORY_FILENAME = "qualitative_research_memory.json"
DEFAULT_SESSIONS_FILENAME = "qualitative_research_sessions.json"
LOG_FILENAME = "qualigraph.log"
SESSION_ID_PREFIX = "qual_"

# ─────────────────────────────────────────────────────────────────────────────
# Context rendering limits
# ─────────────────────────────────────────────────────────────────────────────

RECENT_SESSIONS_LIMIT = 3
SAMPLE_PARTICIPANTS_LIMIT = 5
TOP_CODES_LIMIT = 10
RECENT_MEMOS_LIMIT = 3
RECENT_INTERVIEWS_LIMIT = 5
TOP_COOCCURRING_LIMIT = 5
THEME_QUOTES_LIMIT = 10
QUESTION_QUOTES_LIMIT = 5
SUMMARY_PREVIEW_CHARS = 100
