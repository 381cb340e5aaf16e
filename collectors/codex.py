import os
from pathlib import Path

from collectors.base import (
    DiscoveredFile,
    ParseResult,
    add_counts,
    is_candidate_name,
    scan_records,
    stat_candidate,
    to_int,
)
from dayrange import DayRange, day_key_from_timestamp, iter_day_keys
from models import CodexCounts, CodexTotals, DayModelCounts, FileUsage, ScanOptions, UsageCache
from pricing import codex_cost_usd, normalize_codex_model

DEFAULT_MODEL = "gpt-5"

_EVENT_MARKER = b'"type":"event_msg"'
_CONTEXT_MARKER = b'"type":"turn_context"'
_TOKEN_COUNT_MARKER = b'"token_count"'


def sessions_root(options: ScanOptions | None = None) -> Path:
    if options and options.codex_sessions_root:
        return Path(options.codex_sessions_root).expanduser()
    env = os.environ.get("CODEX_HOME", "").strip()
    if env:
        return Path(env).expanduser() / "sessions"
    return Path.home() / ".codex" / "sessions"


def discover(cache: UsageCache, day_range: DayRange, options: ScanOptions | None = None) -> list[DiscoveredFile]:
    """List session files under ``root/YYYY/MM/DD`` for every day of the scan range."""
    root = sessions_root(options)
    files: list[DiscoveredFile] = []
    for key in iter_day_keys(day_range.scan_since_key, day_range.scan_until_key):
        year, month, day = key.split("-")
        day_dir = root / year / month / day
        try:
            names = sorted(os.listdir(day_dir))
        except OSError:
            continue
        for name in names:
            if not is_candidate_name(name):
                continue
            found = stat_candidate(str(day_dir / name))
            if found is not None:
                files.append(found)
    return files


def has_continuation(usage: FileUsage) -> bool:
    return usage.last_totals is not None


def cumulative_delta(previous: CodexTotals | None, current: CodexTotals) -> CodexCounts:
    """Marginal usage between two running totals; decreases count as zero."""
    prev = previous or CodexTotals()
    return CodexCounts(
        input=max(0, current.input - prev.input),
        cached=max(0, current.cached - prev.cached),
        output=max(0, current.output - prev.output),
    )


def _usage_counts(block: dict) -> CodexTotals:
    cached = block.get("cached_input_tokens")
    if cached is None:
        cached = block.get("cache_read_input_tokens")
    return CodexTotals(
        input=max(0, to_int(block.get("input_tokens"))),
        cached=max(0, to_int(cached)),
        output=max(0, to_int(block.get("output_tokens"))),
    )


def _accept(line: bytes) -> bool:
    if _EVENT_MARKER in line:
        return _TOKEN_COUNT_MARKER in line
    return _CONTEXT_MARKER in line


def parse_file(
    path: Path | str,
    day_range: DayRange,
    start_offset: int = 0,
    initial_model: str | None = None,
    initial_totals: CodexTotals | None = None,
) -> ParseResult:
    days: DayModelCounts = {}
    state = {"model": initial_model, "totals": initial_totals}

    def on_record(obj: dict) -> None:
        entry_type = obj.get("type")
        day = day_key_from_timestamp(obj.get("timestamp"))
        if day is None:
            return

        payload = obj.get("payload")
        if not isinstance(payload, dict):
            return

        if entry_type == "turn_context":
            model = payload.get("model")
            if not isinstance(model, str):
                info = payload.get("info")
                model = info.get("model") if isinstance(info, dict) else None
            if isinstance(model, str) and model:
                state["model"] = model
            return

        if entry_type != "event_msg" or payload.get("type") != "token_count":
            return

        info = payload.get("info")
        if not isinstance(info, dict):
            info = {}
        model = None
        for candidate in (info.get("model"), info.get("model_name"), payload.get("model"), obj.get("model")):
            if isinstance(candidate, str) and candidate:
                model = candidate
                break
        model = model or state["model"] or DEFAULT_MODEL

        total = info.get("total_token_usage")
        last = info.get("last_token_usage")
        if isinstance(total, dict):
            current = _usage_counts(total)
            delta = cumulative_delta(state["totals"], current)
            state["totals"] = current
        elif isinstance(last, dict):
            direct = _usage_counts(last)
            delta = CodexCounts(input=direct.input, cached=direct.cached, output=direct.output)
        else:
            return

        if not (delta.input or delta.cached or delta.output):
            return
        if not day_range.in_scan_range(day):
            return
        delta.cached = min(delta.cached, delta.input)
        add_counts(days, day, normalize_codex_model(model), delta.packed())

    parsed_bytes = scan_records(path, start_offset, _accept, on_record)
    return ParseResult(days, parsed_bytes, state["model"], state["totals"])


def resume_file(path: Path | str, day_range: DayRange, usage: FileUsage) -> ParseResult:
    start = usage.parsed_bytes if usage.parsed_bytes is not None else usage.size
    return parse_file(path, day_range, start, usage.last_model, usage.last_totals)


def day_tokens(packed: list[int]) -> tuple[int, int]:
    counts = CodexCounts.from_packed(packed)
    return counts.input, counts.output


def cost_usd(model: str, packed: list[int]) -> float | None:
    counts = CodexCounts.from_packed(packed)
    return codex_cost_usd(model, counts.input, counts.cached, counts.output)


def no_data_message(options: ScanOptions | None = None) -> str:
    return f"No Codex sessions found in {sessions_root(options)}."
