import json
import os
import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from models import ScanOptions


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Day keys are local-time; pin the process to UTC so fixtures are stable."""
    os.environ["TZ"] = "UTC"
    time.tzset()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep every test away from the real ~/.codex, ~/.claude and cache dirs."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("AI_COST_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("CODEX_HOME", raising=False)
    monkeypatch.delenv("CLAUDE_CONFIG_DIR", raising=False)
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)


def dump(record: dict) -> str:
    # Upstream tools write compact JSON.
    return json.dumps(record, separators=(",", ":"))


def write_lines(path: Path, records, mode: str = "w") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, mode, encoding="utf-8") as fh:
        for record in records:
            fh.write((record if isinstance(record, str) else dump(record)) + "\n")
    return path


def codex_context(ts: str, model: str) -> dict:
    return {"timestamp": ts, "type": "turn_context", "payload": {"model": model}}


def codex_totals(ts: str, inp: int, cached: int, out: int) -> dict:
    return {
        "timestamp": ts,
        "type": "event_msg",
        "payload": {
            "type": "token_count",
            "info": {
                "total_token_usage": {
                    "input_tokens": inp,
                    "cached_input_tokens": cached,
                    "output_tokens": out,
                },
            },
        },
    }


def claude_assistant(ts: str, model: str, inp: int, read: int = 0, create: int = 0, out: int = 0) -> dict:
    return {
        "timestamp": ts,
        "type": "assistant",
        "message": {
            "model": model,
            "usage": {
                "input_tokens": inp,
                "cache_read_input_tokens": read,
                "cache_creation_input_tokens": create,
                "output_tokens": out,
            },
        },
    }


@pytest.fixture
def helpers():
    return SimpleNamespace(
        dump=dump,
        write_lines=write_lines,
        codex_context=codex_context,
        codex_totals=codex_totals,
        claude_assistant=claude_assistant,
    )


@pytest.fixture
def codex_root(tmp_path) -> Path:
    root = tmp_path / "codex" / "sessions"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def claude_root(tmp_path) -> Path:
    root = tmp_path / "claude" / "projects"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def codex_options(codex_root, tmp_path) -> ScanOptions:
    return ScanOptions(
        codex_sessions_root=str(codex_root),
        cache_root=str(tmp_path / "cache"),
        refresh_min_interval_seconds=0,
    )


@pytest.fixture
def claude_options(claude_root, tmp_path) -> ScanOptions:
    return ScanOptions(
        claude_projects_roots=[str(claude_root)],
        cache_root=str(tmp_path / "cache"),
        refresh_min_interval_seconds=0,
    )
