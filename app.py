from datetime import datetime, timedelta

from fastapi import FastAPI, HTTPException, Query

from models import DailyReport, Provider, ScanOptions, TokenSnapshot
from scanner import CostUsageScanner

app = FastAPI(title="AI Cost Monitor")

# Handlers stay `async def`: scans run inline on the event loop, one at a
# time, which is what keeps a shared CostUsageScanner single-threaded.
_SCANNERS: dict[Provider, CostUsageScanner] = {}


def get_scanner(provider: str) -> CostUsageScanner:
    try:
        key = Provider(provider)
    except ValueError:
        raise HTTPException(404, f"Unknown provider: {provider}")
    if key not in _SCANNERS:
        _SCANNERS[key] = CostUsageScanner(key, ScanOptions())
    return _SCANNERS[key]


def reset_scanners() -> None:
    _SCANNERS.clear()


@app.get(
    "/api/cost/{provider}/daily",
    response_model=DailyReport,
    response_model_by_alias=True,
)
async def daily(provider: str, days: int = Query(30, ge=1, le=366)):
    scanner = get_scanner(provider)
    now = datetime.now().astimezone()
    return scanner.daily_report(now - timedelta(days=days - 1), now, now)


@app.get(
    "/api/cost/{provider}/snapshot",
    response_model=TokenSnapshot,
    response_model_by_alias=True,
)
async def snapshot(provider: str):
    return get_scanner(provider).token_snapshot()


@app.get("/api/cost/{provider}/hint")
async def hint(provider: str):
    return {"message": get_scanner(provider).no_data_message()}
