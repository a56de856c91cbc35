"""Summaries for single collections: day logs, activities, nutrition, expenses."""
import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable

from dashboard import activity_minutes, expense_totals, get_field, nutrition_totals
from trends import round_half_up


def slot_has_data(slot: Any) -> bool:
    """A day-log slot counts as logged with a duration or a full start/end pair."""
    if not slot:
        return False
    return bool(get_field(slot, "duration") or (get_field(slot, "start_time") and get_field(slot, "end_time")))


def daylog_week_summary(daylogs: Iterable[Any], start_date: str, end_date: str) -> dict:
    """Sleep and exercise totals for a range of day logs.

    Sleep spans ending before they start are read as overnight; exercise
    spans are clamped at zero.
    """
    daylogs = list(daylogs)
    sleep_total = sleep_days = exercise_total = exercise_days = 0

    for log in daylogs:
        sleep = get_field(log, "sleep")
        if slot_has_data(sleep):
            sleep_total += activity_minutes(sleep, overnight=True)
            sleep_days += 1
        exercise = get_field(log, "exercise")
        if slot_has_data(exercise):
            exercise_total += activity_minutes(exercise)
            exercise_days += 1

    return {
        "period": {"start_date": start_date, "end_date": end_date},
        "days_logged": len(daylogs),
        "sleep": {
            "total_minutes": sleep_total,
            "avg_minutes_per_day": round_half_up(sleep_total / sleep_days) if sleep_days else 0,
            "avg_hours_per_day": round_half_up(sleep_total / sleep_days / 60, 1) if sleep_days else 0,
            "days_tracked": sleep_days,
        },
        "exercise": {
            "total_minutes": exercise_total,
            "avg_minutes_per_day": round_half_up(exercise_total / exercise_days) if exercise_days else 0,
            "days_tracked": exercise_days,
        },
    }


STREAK_RULE = "Day counts if sleep OR exercise is logged"


def streak(daylogs: Iterable[Any], today: date, window: int = 365) -> dict:
    """Current and longest run of consecutive logged days, walking back from today."""
    completed = [
        log for log in daylogs if slot_has_data(get_field(log, "sleep")) or slot_has_data(get_field(log, "exercise"))
    ]
    logged_dates = {get_field(log, "date") for log in completed}

    current = longest = run = 0
    in_current = True
    for back in range(window):
        if (today - timedelta(days=back)).isoformat() in logged_dates:
            run += 1
            if in_current:
                current = run
        else:
            longest = max(longest, run)
            run = 0
            in_current = False
    longest = max(longest, run)

    return {
        "current_streak": current,
        "longest_streak": longest,
        "total_days_logged": len(completed),
        "streak_rule": STREAK_RULE,
    }


def activity_stats(activities: Iterable[Any]) -> dict:
    """Per-name counts and minutes, most frequent first."""
    activities = list(activities)
    stats: Dict[str, dict] = {}
    for activity in activities:
        bucket = stats.setdefault(get_field(activity, "name"), {"count": 0, "total_minutes": 0, "dates": []})
        bucket["count"] += 1
        bucket["dates"].append(get_field(activity, "date"))
        bucket["total_minutes"] += activity_minutes(activity)

    ordered = sorted(
        ({"name": name, **data} for name, data in stats.items()), key=lambda s: s["count"], reverse=True
    )
    return {"total_activities": len(activities), "unique_activities": len(ordered), "activities": ordered}


def nutrition_daily_summary(target_date: str, entries: Iterable[Any]) -> dict:
    entries = list(entries)
    totals = nutrition_totals(entries)
    return {
        "date": target_date,
        "total_entries": len(entries),
        "total_calories": totals["calories"],
        "total_protein": totals["protein"],
        "total_carbs": totals["carbs"],
        "total_fats": totals["fats"],
        "total_fiber": totals["fiber"],
        "by_meal_type": totals["by_meal_type"],
    }


def nutrition_weekly_summary(entries: Iterable[Any], start_date: str, end_date: str) -> dict:
    entries = list(entries)
    daily: Dict[str, dict] = {}
    for entry in entries:
        day = daily.setdefault(
            get_field(entry, "date"), {"calories": 0, "protein": 0, "carbs": 0, "fats": 0, "entries": 0}
        )
        for macro in ("calories", "protein", "carbs", "fats"):
            day[macro] += get_field(entry, macro) or 0
        day["entries"] += 1

    days_with_data = len(daily)
    totals = {
        macro: sum(d[macro] for d in daily.values()) for macro in ("calories", "protein", "carbs", "fats")
    }
    return {
        "period": {"start_date": start_date, "end_date": end_date},
        "total_entries": len(entries),
        "days_with_data": days_with_data,
        "totals": totals,
        "averages": {
            "calories_per_day": round_half_up(totals["calories"] / days_with_data) if days_with_data else 0,
            "protein_per_day": round_half_up(totals["protein"] / days_with_data) if days_with_data else 0,
        },
        "daily_breakdown": daily,
    }


def expense_daily_summary(target_date: str, entries: Iterable[Any]) -> dict:
    entries = list(entries)
    totals = expense_totals(entries)
    by_payment_method: Dict[str, dict] = {}
    for entry in entries:
        bucket = by_payment_method.setdefault(
            get_field(entry, "payment_method") or "unknown", {"count": 0, "amount": 0}
        )
        bucket["count"] += 1
        bucket["amount"] += get_field(entry, "amount") or 0

    return {
        "date": target_date,
        "total_expenses": len(entries),
        "total_amount": totals["total"],
        "by_category": totals["by_category"],
        "by_payment_method": by_payment_method,
    }


def month_range(year: int, month: int) -> tuple[str, str]:
    """First and last day of a month as YYYY-MM-DD strings."""
    last_day = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"


def expense_monthly_summary(year: int, month: int, entries: Iterable[Any]) -> dict:
    entries = list(entries)
    start_date, end_date = month_range(year, month)
    daily: Dict[str, float] = {}
    for entry in entries:
        day = get_field(entry, "date")
        daily[day] = daily.get(day, 0) + (get_field(entry, "amount") or 0)

    totals = expense_totals(entries)
    days_with_expenses = len(daily)
    return {
        "period": {"year": year, "month": month, "start_date": start_date, "end_date": end_date},
        "total_expenses": len(entries),
        "total_amount": totals["total"],
        "average_per_day": round_half_up(totals["total"] / days_with_expenses) if days_with_expenses else 0,
        "days_with_expenses": days_with_expenses,
        "by_category": totals["by_category"],
        "daily_breakdown": daily,
    }


def expense_category_breakdown(entries: Iterable[Any], start_date: str, end_date: str) -> dict:
    entries = list(entries)
    totals = expense_totals(entries)
    total = totals["total"]
    categories = {
        category: {
            **bucket,
            "percentage": round_half_up(bucket["amount"] / total * 100, 1) if total > 0 else 0,
        }
        for category, bucket in totals["by_category"].items()
    }
    return {
        "period": {"start_date": start_date, "end_date": end_date},
        "total_amount": total,
        "total_expenses": len(entries),
        "categories": categories,
    }


def paginate(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": -(-total // limit),
        "has_more": page * limit < total,
    }


def clamp_page(page: int | None, limit: int | None, default_limit: int) -> tuple[int, int]:
    page = max(1, page or 1)
    limit = min(100, max(1, limit or default_limit))
    return page, limit
