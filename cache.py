import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from models import Provider, UsageCache

log = logging.getLogger(__name__)

CACHE_VERSION = 1
APP_DIR_NAME = "ai-cost"

# Width of the packed counts vector per provider.
PACKED_WIDTH = {
    Provider.codex: 3,
    Provider.claude: 4,
}


def default_cache_root() -> Path:
    env = os.environ.get("AI_COST_CACHE_DIR", "").strip()
    if env:
        return Path(env).expanduser()
    xdg = os.environ.get("XDG_CACHE_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".cache"
    return base / APP_DIR_NAME / "cost-usage"


def cache_path(provider: Provider, cache_root: str | Path | None = None) -> Path:
    root = Path(cache_root).expanduser() if cache_root else default_cache_root()
    return root / f"{provider.value}-v{CACHE_VERSION}.json"


def _has_valid_widths(provider: Provider, cache: UsageCache) -> bool:
    width = PACKED_WIDTH[provider]
    maps = [cache.days] + [usage.days for usage in cache.files.values()]
    for days in maps:
        for models in days.values():
            for packed in models.values():
                if len(packed) != width:
                    return False
    return True


def load_cache(provider: Provider, cache_root: str | Path | None = None) -> UsageCache:
    """Load the persisted cache; any problem yields an empty cache."""
    path = cache_path(provider, cache_root)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return UsageCache()
    except OSError as exc:
        log.debug("Cache read failed for %s: %s", path, exc)
        return UsageCache()

    try:
        cache = UsageCache.model_validate_json(raw)
    except ValidationError as exc:
        log.info("Discarding unreadable cache %s (%d errors)", path, exc.error_count())
        return UsageCache()

    if cache.version != CACHE_VERSION or not _has_valid_widths(provider, cache):
        log.info("Discarding incompatible cache %s", path)
        return UsageCache()
    return cache


def save_cache(provider: Provider, cache: UsageCache, cache_root: str | Path | None = None) -> bool:
    """Atomically replace the persisted cache. Failures are logged, not raised."""
    path = cache_path(provider, cache_root)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = cache.model_dump_json(by_alias=True, exclude_none=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as fh:
            tmp_name = fh.name
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
        return True
    except OSError as exc:
        log.warning("Could not save cost cache to %s: %s", path, exc)
        return False
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
