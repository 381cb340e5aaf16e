import inspect
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import app as app_module


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("CODEX_HOME", str(tmp_path / "codex-home"))
    app_module.reset_scanners()
    yield TestClient(app_module.app)
    app_module.reset_scanners()


def test_daily_report_for_today(client, tmp_path, helpers):
    now = datetime.now(timezone.utc)
    day_dir = tmp_path / "codex-home" / "sessions" / f"{now:%Y}" / f"{now:%m}" / f"{now:%d}"
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S.000Z")
    helpers.write_lines(day_dir / "rollout.jsonl", [
        helpers.codex_context(stamp, "gpt-5"),
        helpers.codex_totals(stamp, 1000, 200, 100),
    ])

    resp = client.get("/api/cost/codex/daily", params={"days": 7})
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"][0]["date"] == now.strftime("%Y-%m-%d")
    assert body["data"][0]["totalTokens"] == 1100
    assert body["data"][0]["modelBreakdowns"][0]["modelName"] == "gpt-5"
    assert body["summary"]["totalCostUSD"] == pytest.approx((800 * 1.25 + 200 * 0.125 + 100 * 10) / 1_000_000)


def test_snapshot_without_logs(client):
    resp = client.get("/api/cost/claude/snapshot")
    assert resp.status_code == 200
    body = resp.json()
    assert body["provider"] == "claude"
    assert body["daily"] == []
    assert body["todayTokens"] is None


def test_unknown_provider_is_404(client):
    assert client.get("/api/cost/cursor/daily").status_code == 404
    assert client.get("/api/cost/cursor/snapshot").status_code == 404


def test_hint(client, tmp_path):
    resp = client.get("/api/cost/codex/hint")
    assert resp.json() == {"message": f"No Codex sessions found in {tmp_path / 'codex-home' / 'sessions'}."}


def test_handlers_run_on_the_event_loop():
    # a threadpool handler could refresh one scanner from two threads
    for handler in (app_module.daily, app_module.snapshot, app_module.hint):
        assert inspect.iscoroutinefunction(handler)
