"""Per-day dashboard aggregation."""
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

MACROS = ("calories", "protein", "carbs", "fats", "fiber")


def get_field(record: Any, key: str):
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def today_iso() -> str:
    return datetime.now(UTC).date().isoformat()


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:mm`` string to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def span_minutes(start_time: str, end_time: str, overnight: bool = False) -> int:
    """Minutes between two ``HH:mm`` times.

    An end before the start yields 0, unless ``overnight`` is set, in which
    case the span is taken to cross midnight.
    """
    minutes = time_to_minutes(end_time) - time_to_minutes(start_time)
    if minutes < 0:
        return minutes + 24 * 60 if overnight else 0
    return minutes


def activity_minutes(entry: Any, overnight: bool = False) -> float:
    """Minutes for an activity: its duration, else its start/end span, else 0."""
    duration = get_field(entry, "duration")
    if duration:
        return duration
    start_time = get_field(entry, "start_time")
    end_time = get_field(entry, "end_time")
    if start_time and end_time:
        return span_minutes(start_time, end_time, overnight=overnight)
    return 0


def nutrition_totals(entries: Iterable[Any]) -> dict:
    totals = {macro: 0 for macro in MACROS}
    by_meal_type: dict[str, dict] = {}

    for entry in entries:
        for macro in MACROS:
            totals[macro] += get_field(entry, macro) or 0

        bucket = by_meal_type.setdefault(get_field(entry, "meal_type"), {"count": 0, "calories": 0})
        bucket["count"] += 1
        bucket["calories"] += get_field(entry, "calories") or 0

    totals["by_meal_type"] = by_meal_type
    return totals


def expense_totals(entries: Iterable[Any]) -> dict:
    total = 0
    by_category: dict[str, dict] = {}

    for entry in entries:
        amount = get_field(entry, "amount") or 0
        total += amount

        bucket = by_category.setdefault(get_field(entry, "category"), {"count": 0, "amount": 0})
        bucket["count"] += 1
        bucket["amount"] += amount

    return {"total": total, "by_category": by_category}


def compute_dashboard(
    date: str | None,
    daylog: Any,
    activities: list,
    nutrition_entries: list,
    expense_entries: list,
    templates: list[str] | None = None,
    today: str | None = None,
) -> dict:
    """Reduce one user's records for one day into the dashboard payload.

    The collections must already be filtered to the user and date. Nothing
    is validated here: a meal type or category the write path would reject
    still gets its own bucket.
    """
    activities = list(activities)
    nutrition_entries = list(nutrition_entries)
    expense_entries = list(expense_entries)

    return {
        "date": date or today or today_iso(),
        "daylog": daylog,
        "activities": {
            "items": activities,
            "count": len(activities),
            "total_minutes": sum(activity_minutes(a) for a in activities),
        },
        "nutrition": {
            "entries": nutrition_entries,
            "count": len(nutrition_entries),
            "totals": nutrition_totals(nutrition_entries),
        },
        "expenses": {
            "entries": expense_entries,
            "count": len(expense_entries),
            "totals": expense_totals(expense_entries),
        },
        "custom_activities": {
            "templates": list(templates or []),
            "today_logs": activities,
        },
    }
