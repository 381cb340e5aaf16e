import logging
import os
from pathlib import Path
from typing import NamedTuple

from collectors.base import (
    DiscoveredFile,
    ParseResult,
    add_counts,
    is_candidate_name,
    mtime_ms,
    scan_records,
    stat_candidate,
    to_int,
)
from dayrange import DayRange, day_key_from_timestamp
from models import ClaudeCounts, DayModelCounts, FileUsage, ScanOptions, UsageCache
from pricing import claude_cost_usd, normalize_claude_model

log = logging.getLogger(__name__)

_ASSISTANT_MARKER = b'"type":"assistant"'
_USAGE_MARKER = b'"usage"'


class CanonicalRoot(NamedTuple):
    path: str
    aliases: tuple[str, ...]
    exists: bool

    def owns(self, path: str) -> bool:
        return any(path.startswith(alias.rstrip(os.sep) + os.sep) for alias in self.aliases)


def projects_roots(options: ScanOptions | None = None) -> list[str]:
    if options and options.claude_projects_roots is not None:
        return [str(Path(root).expanduser()) for root in options.claude_projects_roots]

    env = os.environ.get("CLAUDE_CONFIG_DIR", "").strip()
    if env:
        roots = []
        for part in env.split(","):
            raw = part.strip()
            if not raw:
                continue
            path = Path(raw).expanduser()
            roots.append(str(path if path.name == "projects" else path / "projects"))
        return roots

    home = Path.home()
    return [
        str(home / ".config" / "claude" / "projects"),
        str(home / ".claude" / "projects"),
    ]


def root_aliases(path: str) -> list[str]:
    """Every spelling under which ``path`` may show up on disk."""
    aliases = [path]
    if path.startswith("/var/"):
        aliases.insert(0, "/private" + path)
    elif path.startswith("/private/var/"):
        aliases.append(path[len("/private"):])
    real = os.path.realpath(path)
    if real not in aliases:
        aliases.append(real)
    return aliases


def canonicalize_root(root: str) -> CanonicalRoot:
    raw = os.path.abspath(os.path.expanduser(root))
    aliases = root_aliases(raw)
    existing = next((alias for alias in aliases if os.path.isdir(alias)), None)
    canonical = os.path.realpath(existing) if existing else raw
    if canonical not in aliases:
        aliases.append(canonical)
    return CanonicalRoot(canonical, tuple(aliases), existing is not None)


def _forget_root(root: CanonicalRoot, roots_cache: dict[str, int], dirs_cache: dict[str, int]) -> None:
    for alias in root.aliases:
        roots_cache.pop(alias, None)
    for key in [k for k in dirs_cache if root.owns(k)]:
        del dirs_cache[key]


def _dirs_unchanged(root: CanonicalRoot, dirs_cache: dict[str, int]) -> bool:
    for key, recorded in dirs_cache.items():
        if not root.owns(key):
            continue
        try:
            if mtime_ms(os.stat(key)) != recorded:
                return False
        except OSError:
            return False
    return True


def _walk(root: CanonicalRoot) -> tuple[list[DiscoveredFile], dict[str, int]]:
    files: list[DiscoveredFile] = []
    dir_mtimes: dict[str, int] = {}

    def on_error(exc: OSError) -> None:
        log.debug("Skipping unreadable directory %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root.path, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        if dirpath != root.path:
            try:
                dir_mtimes[dirpath] = mtime_ms(os.stat(dirpath))
            except OSError:
                continue
        for name in sorted(filenames):
            if not is_candidate_name(name):
                continue
            found = stat_candidate(os.path.join(dirpath, name))
            if found is not None:
                files.append(found)
    return files, dir_mtimes


def discover(cache: UsageCache, day_range: DayRange, options: ScanOptions | None = None) -> list[DiscoveredFile]:
    """Walk every projects root, or re-stat known files when nothing moved.

    Root and subdirectory mtimes are recorded in ``cache.roots`` and
    ``cache.dirs``; a root whose directories all kept their mtimes is not
    walked again.
    """
    roots_cache = dict(cache.roots or {})
    dirs_cache = dict(cache.dirs or {})
    files: dict[str, DiscoveredFile] = {}
    seen: set[str] = set()

    for raw in projects_roots(options):
        root = canonicalize_root(raw)
        if root.path in seen:
            continue
        seen.add(root.path)

        try:
            root_mtime = mtime_ms(os.stat(root.path)) if root.exists else 0
        except OSError:
            root_mtime = 0
        if root_mtime <= 0:
            _forget_root(root, roots_cache, dirs_cache)
            continue

        cached_mtime = next((roots_cache[a] for a in root.aliases if a in roots_cache), None)
        if cached_mtime == root_mtime and _dirs_unchanged(root, dirs_cache):
            for path in cache.files:
                if not root.owns(path):
                    continue
                found = stat_candidate(path)
                if found is not None:
                    files[path] = found
            continue

        walked, dir_mtimes = _walk(root)
        for found in walked:
            files[found.path] = found
        _forget_root(root, roots_cache, dirs_cache)
        roots_cache[root.path] = root_mtime
        dirs_cache.update(dir_mtimes)

    cache.roots = roots_cache or None
    cache.dirs = dirs_cache or None
    return list(files.values())


def has_continuation(usage: FileUsage) -> bool:
    return True


def _accept(line: bytes) -> bool:
    return _ASSISTANT_MARKER in line and _USAGE_MARKER in line


def parse_file(path: Path | str, day_range: DayRange, start_offset: int = 0) -> ParseResult:
    days: DayModelCounts = {}

    def on_record(obj: dict) -> None:
        if obj.get("type") != "assistant":
            return
        day = day_key_from_timestamp(obj.get("timestamp"))
        if day is None or not day_range.in_scan_range(day):
            return
        message = obj.get("message")
        if not isinstance(message, dict):
            return
        model = message.get("model")
        usage = message.get("usage")
        if not isinstance(model, str) or not model or not isinstance(usage, dict):
            return

        counts = ClaudeCounts(
            input=max(0, to_int(usage.get("input_tokens"))),
            cache_read=max(0, to_int(usage.get("cache_read_input_tokens"))),
            cache_create=max(0, to_int(usage.get("cache_creation_input_tokens"))),
            output=max(0, to_int(usage.get("output_tokens"))),
        )
        packed = counts.packed()
        if not any(packed):
            return
        add_counts(days, day, normalize_claude_model(model), packed)

    parsed_bytes = scan_records(path, start_offset, _accept, on_record)
    return ParseResult(days, parsed_bytes)


def resume_file(path: Path | str, day_range: DayRange, usage: FileUsage) -> ParseResult:
    start = usage.parsed_bytes if usage.parsed_bytes is not None else usage.size
    return parse_file(path, day_range, start)


def day_tokens(packed: list[int]) -> tuple[int, int]:
    counts = ClaudeCounts.from_packed(packed)
    return counts.input + counts.cache_read + counts.cache_create, counts.output


def cost_usd(model: str, packed: list[int]) -> float | None:
    counts = ClaudeCounts.from_packed(packed)
    return claude_cost_usd(model, counts.input, counts.cache_read, counts.cache_create, counts.output)


def no_data_message(options: ScanOptions | None = None) -> str:
    return "No Claude usage logs found in " + " or ".join(projects_roots(options)) + "."
