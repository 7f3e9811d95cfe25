"""Store locations, resolved from the environment.

MEMORY_FILE_PATH    graph file (default ./qualitative_research_memory.json)
SESSIONS_FILE_PATH  session file (default: next to the graph file)

Relative paths resolve against the current working directory.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_MEMORY_FILENAME, DEFAULT_SESSIONS_FILENAME, LOG_FILENAME

MEMORY_FILE_ENV = "MEMORY_FILE_PATH"
SESSIONS_FILE_ENV = "SESSIONS_FILE_PATH"


def _resolve(value: str | os.PathLike) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


@dataclass(frozen=True)
class Settings:
    memory_file: Path
    sessions_file: Path

    @property
    def log_file(self) -> Path:
        return self.memory_file.parent / LOG_FILENAME


def load_settings(
    environ: Mapping[str, str] | None = None,
    memory_file: str | os.PathLike | None = None,
) -> Settings:
    """Resolve both store paths.

    An explicit `memory_file` (e.g. a CLI option) wins over the environment.
    """
    if environ is None:
        environ = os.environ

    memory = _resolve(memory_file or environ.get(MEMORY_FILE_ENV) or DEFAULT_MEMORY_FILENAME)

    sessions_value = environ.get(SESSIONS_FILE_ENV)
    if sessions_value:
        sessions = _resolve(sessions_value)
    else:
        sessions = memory.parent / DEFAULT_SESSIONS_FILENAME

    return Settings(memory_file=memory, sessions_file=sessions)
