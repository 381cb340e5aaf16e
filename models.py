from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NonNegInt = Annotated[int, Field(ge=0)]

# day key -> model -> packed counts
DayModelCounts = dict[str, dict[str, list[NonNegInt]]]


class Provider(str, Enum):
    codex = "codex"
    claude = "claude"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class CodexCounts(BaseModel):
    """Packed layout: [input, cached, output]."""

    input: NonNegInt = 0
    cached: NonNegInt = 0
    output: NonNegInt = 0

    @classmethod
    def from_packed(cls, packed: list[int]) -> "CodexCounts":
        padded = list(packed) + [0] * (3 - len(packed))
        return cls(input=padded[0], cached=padded[1], output=padded[2])

    def packed(self) -> list[int]:
        return [self.input, self.cached, self.output]


class ClaudeCounts(BaseModel):
    """Packed layout: [input, cache_read, cache_create, output]."""

    input: NonNegInt = 0
    cache_read: NonNegInt = 0
    cache_create: NonNegInt = 0
    output: NonNegInt = 0

    @classmethod
    def from_packed(cls, packed: list[int]) -> "ClaudeCounts":
        padded = list(packed) + [0] * (4 - len(packed))
        return cls(
            input=padded[0],
            cache_read=padded[1],
            cache_create=padded[2],
            output=padded[3],
        )

    def packed(self) -> list[int]:
        return [self.input, self.cache_read, self.cache_create, self.output]


class CodexTotals(BaseModel):
    input: NonNegInt = 0
    cached: NonNegInt = 0
    output: NonNegInt = 0


class FileUsage(CamelModel):
    mtime_unix_ms: int = 0
    size: NonNegInt = 0
    days: DayModelCounts = {}
    parsed_bytes: NonNegInt | None = None
    last_model: str | None = None
    last_totals: CodexTotals | None = None


class UsageCache(CamelModel):
    version: int = 1
    last_scan_unix_ms: int = 0
    scan_since_key: str | None = None
    scan_until_key: str | None = None
    files: dict[str, FileUsage] = {}
    days: DayModelCounts = {}
    roots: dict[str, int] | None = None
    dirs: dict[str, int] | None = None


class ModelBreakdown(CamelModel):
    model_name: str
    cost_usd: float | None = Field(default=None, alias="costUSD")


class DailyEntry(CamelModel):
    date: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float | None = Field(default=None, alias="costUSD")
    models_used: list[str] = []
    model_breakdowns: list[ModelBreakdown] = []


class DailySummary(CamelModel):
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_tokens: int = 0
    total_cost_usd: float | None = Field(default=None, alias="totalCostUSD")


class DailyReport(CamelModel):
    data: list[DailyEntry] = []
    summary: DailySummary | None = None


class TokenSnapshot(CamelModel):
    provider: Provider
    today_tokens: int | None = None
    today_cost_usd: float | None = Field(default=None, alias="todayCostUSD")
    last30_days_tokens: int | None = Field(default=None, alias="last30DaysTokens")
    last30_days_cost_usd: float | None = Field(default=None, alias="last30DaysCostUSD")
    daily: list[DailyEntry] = []
    updated_at: str


class ScanOptions(CamelModel):
    codex_sessions_root: str | None = None
    claude_projects_roots: list[str] | None = None
    cache_root: str | None = None
    refresh_min_interval_seconds: float = 60
    # history older than this (before the newest scanned day) is dropped
    retention_days: int = Field(default=400, ge=1)
