from types import ModuleType

from dayrange import DayRange
from models import DailyEntry, DailyReport, DailySummary, ModelBreakdown, UsageCache

TOP_MODELS = 3


def _breakdown_sort_key(item: ModelBreakdown) -> float:
    return -(item.cost_usd if item.cost_usd is not None else -1.0)


def build_report(cache: UsageCache, day_range: DayRange, source: ModuleType) -> DailyReport:
    """Render cached day/model counts for the exact (unpadded) range.

    ``source`` is the collector module, which knows how its packed counts
    split into input/output tokens and how they are priced.
    """
    entries: list[DailyEntry] = []
    total_input = 0
    total_output = 0
    total_cost = 0.0
    cost_seen = False

    for day in sorted(k for k in cache.days if day_range.in_report_range(k)):
        models = cache.days[day]
        model_names = sorted(models)

        day_input = 0
        day_output = 0
        day_cost = 0.0
        day_cost_seen = False
        breakdown: list[ModelBreakdown] = []

        for model in model_names:
            packed = models[model]
            inp, out = source.day_tokens(packed)
            day_input += inp
            day_output += out
            cost = source.cost_usd(model, packed)
            breakdown.append(ModelBreakdown(model_name=model, cost_usd=cost))
            if cost is not None:
                day_cost += cost
                day_cost_seen = True

        breakdown.sort(key=_breakdown_sort_key)
        entry_cost = day_cost if day_cost_seen else None
        entries.append(DailyEntry(
            date=day,
            input_tokens=day_input,
            output_tokens=day_output,
            total_tokens=day_input + day_output,
            cost_usd=entry_cost,
            models_used=model_names,
            model_breakdowns=breakdown[:TOP_MODELS],
        ))

        total_input += day_input
        total_output += day_output
        if entry_cost is not None:
            total_cost += entry_cost
            cost_seen = True

    summary = None
    if entries:
        summary = DailySummary(
            total_input_tokens=total_input,
            total_output_tokens=total_output,
            total_tokens=total_input + total_output,
            total_cost_usd=total_cost if cost_seen else None,
        )
    return DailyReport(data=entries, summary=summary)
