import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from aggregate import apply_days, merge_file_days, prune_days
from cache import load_cache, save_cache
from collectors import claude, codex
from collectors.base import DiscoveredFile
from dayrange import DayRange, day_key, shift_day_key
from models import DailyReport, FileUsage, Provider, ScanOptions, TokenSnapshot, UsageCache
from report import build_report

log = logging.getLogger(__name__)

_SOURCES = {
    Provider.codex: codex,
    Provider.claude: claude,
}

SNAPSHOT_DAYS = 30


def _unix_ms(instant: datetime) -> int:
    return int(instant.timestamp() * 1000)


class CostUsageScanner:
    """Incremental scanner for one provider's logs, backed by one cache file.

    The cache is kept in memory after the first call, so refreshes gated by
    ``refresh_min_interval_seconds`` touch neither the logs nor the cache
    file. Not safe to share between threads.
    """

    def __init__(self, provider: Provider | str, options: ScanOptions | None = None):
        self.provider = Provider(provider)
        self.options = options or ScanOptions()
        self.source = _SOURCES[self.provider]
        self._cache: UsageCache | None = None

    @property
    def cache(self) -> UsageCache:
        if self._cache is None:
            self._cache = load_cache(self.provider, self.options.cache_root)
        return self._cache

    def should_refresh(self, now: datetime) -> bool:
        refresh_ms = int(max(0.0, self.options.refresh_min_interval_seconds) * 1000)
        last = self.cache.last_scan_unix_ms
        return refresh_ms == 0 or last == 0 or _unix_ms(now) - last > refresh_ms

    def daily_report(self, since: datetime, until: datetime, now: datetime | None = None) -> DailyReport:
        now = now or datetime.now(timezone.utc)
        day_range = DayRange.from_instants(since, until)
        if self.should_refresh(now):
            self.refresh(day_range, now)
        return build_report(self.cache, day_range, self.source)

    def scan_window(self, day_range: DayRange) -> DayRange:
        """Padded range to parse: the cached window widened to cover ``day_range``.

        The window never moves inward for a narrower request. Only history
        more than ``retention_days`` before its last day is let go.
        """
        cache = self.cache
        since = day_range.scan_since_key
        until = day_range.scan_until_key
        if cache.scan_since_key and cache.scan_until_key:
            until = max(until, cache.scan_until_key)
            floor = shift_day_key(until, -self.options.retention_days)
            since = min(since, max(cache.scan_since_key, floor))
        return replace(day_range, scan_since_key=since, scan_until_key=until)

    def _misses_days(self, window: DayRange) -> bool:
        """True when files parsed under the cached window may lack days of ``window``."""
        cache = self.cache
        if not cache.files:
            return False
        if not cache.scan_since_key or not cache.scan_until_key:
            return True
        if window.scan_since_key < cache.scan_since_key:
            return True
        # Records are never newer than the scan that read them, so a window
        # that already reached the last scan's day can grow later for free.
        last_day = day_key(datetime.fromtimestamp(cache.last_scan_unix_ms / 1000, tz=timezone.utc))
        return window.scan_until_key > cache.scan_until_key and cache.scan_until_key < last_day

    def refresh(self, day_range: DayRange, now: datetime) -> UsageCache:
        window = self.scan_window(day_range)
        cache = self.cache
        if self._misses_days(window):
            log.info(
                "%s: scan window widened to %s..%s, rebuilding cache",
                self.provider.value, window.scan_since_key, window.scan_until_key,
            )
            cache = UsageCache()

        files = self.source.discover(cache, window, self.options)
        touched = set()
        parsed = 0
        for found in files:
            touched.add(found.path)
            if self._process_file(cache, found, window):
                parsed += 1

        for path in [p for p in cache.files if p not in touched]:
            apply_days(cache.days, cache.files[path].days, -1)
            del cache.files[path]

        prune_days(cache.days, window.scan_since_key, window.scan_until_key)
        for usage in cache.files.values():
            prune_days(usage.days, window.scan_since_key, window.scan_until_key)

        cache.scan_since_key = window.scan_since_key
        cache.scan_until_key = window.scan_until_key
        cache.last_scan_unix_ms = _unix_ms(now)
        self._cache = cache
        log.debug(
            "%s: scanned %d files, parsed %d, tracking %d",
            self.provider.value, len(files), parsed, len(cache.files),
        )
        save_cache(self.provider, cache, self.options.cache_root)
        return cache

    def _process_file(self, cache: UsageCache, found: DiscoveredFile, day_range: DayRange) -> bool:
        cached = cache.files.get(found.path)
        if cached is not None and cached.mtime_unix_ms == found.mtime_ms and cached.size == found.size:
            return False

        if cached is not None:
            start = cached.parsed_bytes if cached.parsed_bytes is not None else cached.size
            grown = found.size > cached.size and 0 < start <= found.size
            if grown and self.source.has_continuation(cached):
                delta = self.source.resume_file(found.path, day_range, cached)
                apply_days(cache.days, delta.days, 1)
                cache.files[found.path] = FileUsage(
                    mtime_unix_ms=found.mtime_ms,
                    size=found.size,
                    days=merge_file_days(cached.days, delta.days),
                    parsed_bytes=delta.parsed_bytes,
                    last_model=delta.last_model,
                    last_totals=delta.last_totals,
                )
                return True
            apply_days(cache.days, cached.days, -1)

        result = self.source.parse_file(found.path, day_range)
        usage = FileUsage(
            mtime_unix_ms=found.mtime_ms,
            size=found.size,
            days=result.days,
            parsed_bytes=result.parsed_bytes,
            last_model=result.last_model,
            last_totals=result.last_totals,
        )
        cache.files[found.path] = usage
        apply_days(cache.days, usage.days, 1)
        return True

    def token_snapshot(self, now: datetime | None = None) -> TokenSnapshot:
        now = now or datetime.now().astimezone()
        report = self.daily_report(now - timedelta(days=SNAPSHOT_DAYS), now, now)
        today = next((entry for entry in report.data if entry.date == day_key(now)), None)
        summary = report.summary
        return TokenSnapshot(
            provider=self.provider,
            today_tokens=today.total_tokens if today else None,
            today_cost_usd=today.cost_usd if today else None,
            last30_days_tokens=summary.total_tokens if summary else None,
            last30_days_cost_usd=summary.total_cost_usd if summary else None,
            daily=report.data,
            updated_at=now.isoformat(),
        )

    def no_data_message(self) -> str:
        return self.source.no_data_message(self.options)


def load_daily_report(
    provider: Provider | str,
    since: datetime,
    until: datetime,
    now: datetime | None = None,
    options: ScanOptions | None = None,
) -> DailyReport:
    return CostUsageScanner(provider, options).daily_report(since, until, now)


def load_token_snapshot(
    provider: Provider | str,
    now: datetime | None = None,
    options: ScanOptions | None = None,
) -> TokenSnapshot:
    return CostUsageScanner(provider, options).token_snapshot(now)


def no_data_message(provider: Provider | str, options: ScanOptions | None = None) -> str:
    return CostUsageScanner(provider, options).no_data_message()
