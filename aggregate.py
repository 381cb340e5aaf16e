from dayrange import is_in_range
from models import DayModelCounts, FileUsage


def add_packed(a: list[int], b: list[int], sign: int) -> list[int]:
    """Elementwise ``a + sign * b``, clamped at zero."""
    width = max(len(a), len(b))
    out = []
    for idx in range(width):
        left = a[idx] if idx < len(a) else 0
        right = b[idx] if idx < len(b) else 0
        out.append(max(0, left + sign * right))
    return out


def apply_days(target: DayModelCounts, delta: DayModelCounts, sign: int) -> None:
    """Add (sign=1) or retract (sign=-1) ``delta`` into ``target`` in place.

    Models whose counts drop to all-zero are removed, and so are days left
    with no models.
    """
    for day, models in delta.items():
        day_models = target.get(day, {})
        for model, packed in models.items():
            merged = add_packed(day_models.get(model, []), packed, sign)
            if any(merged):
                day_models[model] = merged
            else:
                day_models.pop(model, None)
        if day_models:
            target[day] = day_models
        else:
            target.pop(day, None)


def merge_file_days(existing: DayModelCounts, delta: DayModelCounts) -> DayModelCounts:
    merged = {day: {model: list(packed) for model, packed in models.items()} for day, models in existing.items()}
    apply_days(merged, delta, 1)
    return merged


def prune_days(days: DayModelCounts, since: str, until: str) -> None:
    for key in [k for k in days if not is_in_range(k, since, until)]:
        del days[key]


def rebuild_days(files: dict[str, FileUsage]) -> DayModelCounts:
    rebuilt: DayModelCounts = {}
    for usage in files.values():
        apply_days(rebuilt, usage.days, 1)
    return rebuilt
