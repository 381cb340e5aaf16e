import json
import logging
import os
from pathlib import Path
from typing import Callable, NamedTuple

from jsonl import iter_lines
from models import CodexTotals, DayModelCounts

log = logging.getLogger(__name__)

JSONL_SUFFIX = ".jsonl"


class DiscoveredFile(NamedTuple):
    path: str
    size: int
    mtime_ms: int


class ParseResult(NamedTuple):
    days: DayModelCounts
    parsed_bytes: int
    last_model: str | None = None
    last_totals: CodexTotals | None = None


def is_candidate_name(name: str) -> bool:
    return not name.startswith(".") and name.lower().endswith(JSONL_SUFFIX)


def mtime_ms(st: os.stat_result) -> int:
    return st.st_mtime_ns // 1_000_000


def stat_candidate(path: str) -> DiscoveredFile | None:
    """Stat a regular, non-empty file; anything else is not a candidate."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    if not os.path.isfile(path) or st.st_size <= 0:
        return None
    return DiscoveredFile(path, st.st_size, mtime_ms(st))


def to_int(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0


def add_counts(days: DayModelCounts, day: str, model: str, packed: list[int]) -> None:
    day_models = days.setdefault(day, {})
    current = day_models.get(model)
    if current is None:
        day_models[model] = list(packed)
    else:
        day_models[model] = [a + b for a, b in zip(current, packed)]


def _decode(data: bytes) -> dict | None:
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return obj if isinstance(obj, dict) else None


def scan_records(
    path: Path | str,
    offset: int,
    accept: Callable[[bytes], bool],
    on_record: Callable[[dict], None],
) -> int:
    """Feed every decodable record that passes ``accept`` to ``on_record``.

    Returns the byte offset up to which the file has been consumed. A
    trailing line without a newline counts only once it decodes as a
    complete record, so a half-written line is picked up again later.
    """
    parsed = offset
    try:
        for line in iter_lines(path, offset):
            if not line.terminated:
                if line.truncated:
                    break
                obj = _decode(line.data)
                if obj is None:
                    break
                parsed = line.end_offset
                if accept(line.data):
                    on_record(obj)
                break

            parsed = line.end_offset
            if line.truncated or not line.data or not accept(line.data):
                continue
            obj = _decode(line.data)
            if obj is not None:
                on_record(obj)
    except OSError as exc:
        log.debug("Stopped reading %s at byte %d: %s", path, parsed, exc)
    return parsed
