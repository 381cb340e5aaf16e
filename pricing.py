import re

# USD per 1M tokens
CODEX_PRICING = {
    "gpt-5": {"input": 1.25, "cached_input": 0.125, "output": 10.00},
    "gpt-5-codex": {"input": 1.25, "cached_input": 0.125, "output": 10.00},
    "gpt-5-mini": {"input": 0.25, "cached_input": 0.025, "output": 2.00},
    "gpt-5-nano": {"input": 0.05, "cached_input": 0.005, "output": 0.40},
    "gpt-5.1": {"input": 1.25, "cached_input": 0.125, "output": 10.00},
    "gpt-5.1-codex": {"input": 1.25, "cached_input": 0.125, "output": 10.00},
    "gpt-5.1-codex-max": {"input": 1.25, "cached_input": 0.125, "output": 10.00},
    "gpt-5.1-codex-mini": {"input": 0.25, "cached_input": 0.025, "output": 2.00},
    "gpt-5.2": {"input": 1.75, "cached_input": 0.175, "output": 14.00},
    "gpt-5.2-codex": {"input": 1.75, "cached_input": 0.175, "output": 14.00},
}

CLAUDE_PRICING = {
    "claude-opus-4": {"input": 15.00, "output": 75.00, "cache_write": 18.75, "cache_read": 1.50},
    "claude-opus-4-1": {"input": 15.00, "output": 75.00, "cache_write": 18.75, "cache_read": 1.50},
    "claude-opus-4-5": {"input": 5.00, "output": 25.00, "cache_write": 6.25, "cache_read": 0.50},
    "claude-opus-4-6": {"input": 5.00, "output": 25.00, "cache_write": 6.25, "cache_read": 0.50},
    "claude-sonnet-4": {"input": 3.00, "output": 15.00, "cache_write": 3.75, "cache_read": 0.30},
    "claude-sonnet-4-5": {"input": 3.00, "output": 15.00, "cache_write": 3.75, "cache_read": 0.30},
    "claude-3-7-sonnet": {"input": 3.00, "output": 15.00, "cache_write": 3.75, "cache_read": 0.30},
    "claude-haiku-4-5": {"input": 1.00, "output": 5.00, "cache_write": 1.25, "cache_read": 0.10},
    "claude-3-5-haiku": {"input": 0.80, "output": 4.00, "cache_write": 1.00, "cache_read": 0.08},
}

_PER_TOKEN = 1_000_000

_CODEX_DATE_SUFFIX = re.compile(r"-\d{4}-\d{2}-\d{2}$")
_CLAUDE_DATE_SUFFIX = re.compile(r"-\d{8}$")
_CLAUDE_VENDOR_PREFIX = re.compile(r"^(?:[a-z]{2,4}\.)?anthropic\.")


def normalize_codex_model(model: str) -> str:
    name = model.strip().lower()
    if name.startswith("openai/"):
        name = name[len("openai/"):]
    return _CODEX_DATE_SUFFIX.sub("", name)


def normalize_claude_model(model: str) -> str:
    """Map Bedrock / Vertex / dated ids onto the base pricing key."""
    name = model.strip().lower()
    if name.startswith("anthropic/"):
        name = name[len("anthropic/"):]
    name = _CLAUDE_VENDOR_PREFIX.sub("", name)
    name = name.split("@", 1)[0]
    name = re.sub(r"-v\d+:\d+$", "", name)
    return _CLAUDE_DATE_SUFFIX.sub("", name)


def codex_cost_usd(model: str, input_tokens: int, cached_input_tokens: int, output_tokens: int) -> float | None:
    pricing = CODEX_PRICING.get(normalize_codex_model(model))
    if pricing is None:
        return None
    cached = min(cached_input_tokens, input_tokens)
    uncached = input_tokens - cached
    return (
        uncached * pricing["input"]
        + cached * pricing["cached_input"]
        + output_tokens * pricing["output"]
    ) / _PER_TOKEN


def claude_cost_usd(
    model: str,
    input_tokens: int,
    cache_read_input_tokens: int,
    cache_creation_input_tokens: int,
    output_tokens: int,
) -> float | None:
    pricing = CLAUDE_PRICING.get(normalize_claude_model(model))
    if pricing is None:
        return None
    return (
        input_tokens * pricing["input"]
        + cache_read_input_tokens * pricing["cache_read"]
        + cache_creation_input_tokens * pricing["cache_write"]
        + output_tokens * pricing["output"]
    ) / _PER_TOKEN
