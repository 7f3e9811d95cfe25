"""Tests for store path resolution."""

from pathlib import Path

from qualigraph.config import load_settings


def test_defaults_in_working_directory():
    settings = load_settings(environ={})
    assert settings.memory_file == Path.cwd() / "qualitative_research_memory.json"
    assert settings.sessions_file == Path.cwd() / "qualitative_research_sessions.json"


def test_sessions_default_next_to_memory_file(tmp_path):
    settings = load_settings(environ={"MEMORY_FILE_PATH": str(tmp_path / "graph.json")})
    assert settings.memory_file == tmp_path / "graph.json"
    assert settings.sessions_file == tmp_path / "qualitative_research_sessions.json"
    assert settings.log_file == tmp_path / "qualigraph.log"


def test_explicit_sessions_file(tmp_path):
    settings = load_settings(environ={
        "MEMORY_FILE_PATH": str(tmp_path / "graph.json"),
        "SESSIONS_FILE_PATH": str(tmp_path / "elsewhere" / "s.json"),
    })
    assert settings.sessions_file == tmp_path / "elsewhere" / "s.json"


def test_relative_path_resolves_against_cwd():
    settings = load_settings(environ={"MEMORY_FILE_PATH": "data/graph.json"})
    assert settings.memory_file == Path.cwd() / "data" / "graph.json"


def test_explicit_argument_wins(tmp_path):
    settings = load_settings(
        environ={"MEMORY_FILE_PATH": str(tmp_path / "env.json")},
        memory_file=tmp_path / "cli.json",
    )
    assert settings.memory_file == tmp_path / "cli.json"
