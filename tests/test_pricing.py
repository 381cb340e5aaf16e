import pytest

from pricing import claude_cost_usd, codex_cost_usd, normalize_claude_model, normalize_codex_model


@pytest.mark.parametrize("raw,expected", [
    ("gpt-5", "gpt-5"),
    ("GPT-5-Codex", "gpt-5-codex"),
    ("openai/gpt-5.2-codex", "gpt-5.2-codex"),
    ("gpt-5-2025-08-07", "gpt-5"),
])
def test_normalize_codex_model(raw, expected):
    assert normalize_codex_model(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("claude-sonnet-4-5-20250929", "claude-sonnet-4-5"),
    ("us.anthropic.claude-sonnet-4-5-20250929-v1:0", "claude-sonnet-4-5"),
    ("anthropic.claude-haiku-4-5-20251001-v1:0", "claude-haiku-4-5"),
    ("claude-opus-4-1@20250805", "claude-opus-4-1"),
    ("claude-opus-4-6", "claude-opus-4-6"),
])
def test_normalize_claude_model(raw, expected):
    assert normalize_claude_model(raw) == expected


def test_codex_cost_bills_cached_input_at_discount():
    # 1M input of which 400k cached, 100k output on gpt-5
    cost = codex_cost_usd("gpt-5", 1_000_000, 400_000, 100_000)
    assert cost == pytest.approx(0.6 * 1.25 + 0.4 * 0.125 + 0.1 * 10.0)


def test_claude_cost_sums_each_category():
    cost = claude_cost_usd("claude-sonnet-4-5-20250929", 1_000_000, 1_000_000, 1_000_000, 1_000_000)
    assert cost == pytest.approx(3.00 + 0.30 + 3.75 + 15.00)


def test_unpriced_models_have_no_cost():
    assert codex_cost_usd("model-a", 100, 0, 10) is None
    assert claude_cost_usd("claude-3-opus-20240229", 100, 0, 0, 10) is None
    assert claude_cost_usd("claude-2.1", 100, 0, 0, 10) is None
