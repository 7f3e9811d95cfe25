"""Error taxonomy surfaced by the graph engine.

Callers (the MCP server, the CLI) convert these into failure envelopes.
Nothing inside the engine retries.
"""


class QualigraphError(Exception):
    """Base class for all qualigraph errors."""


class ValidationError(QualigraphError, ValueError):
    """Unknown entity/relation type or a status/priority value outside its enumeration."""


class NotFoundError(QualigraphError, LookupError):
    """A referenced entity does not exist where existence is required."""


class StorageError(QualigraphError, OSError):
    """Reading or writing a store file failed (other than the file being absent)."""
