"""Weekly, monthly and yearly trend reductions for one user."""
import math
from collections import defaultdict
from datetime import UTC, date, datetime, timedelta
from typing import Any, Dict, Iterable, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dashboard import activity_minutes, get_field

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator: 0.5 always goes up."""
    factor = 10**digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def today_in_timezone(tz: str = "UTC") -> date:
    """Current calendar date in an IANA timezone.

    Raises ValueError for an unknown timezone name.
    """
    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz}") from e
    return datetime.now(UTC).astimezone(zone).date()


def sleep_hours(daylog: Any) -> float:
    minutes = activity_minutes(get_field(daylog, "sleep") or {}, overnight=True)
    return round_half_up(minutes / 60, 1) if minutes else 0


def exercise_minutes(daylog: Any) -> float:
    return activity_minutes(get_field(daylog, "exercise") or {})


def filter_to_templates(activities: Iterable[Any], template_names: Iterable[str]) -> List[Any]:
    """Keep only activities whose name matches an active template."""
    names = {n.lower() for n in template_names}
    return [a for a in activities if get_field(a, "name").lower() in names]


def _daily_data(start: date, days: int, daylogs, nutrition, expenses) -> Dict[str, dict]:
    daily = {}
    for offset in range(days):
        key = (start + timedelta(days=offset)).isoformat()
        daily[key] = {"date": key, "sleep": 0, "exercise": 0, "calories": 0, "expenses": 0}

    for log in daylogs:
        day = daily.get(get_field(log, "date"))
        if day is not None:
            day["sleep"] = sleep_hours(log)
            day["exercise"] = exercise_minutes(log)

    for entry in nutrition:
        day = daily.get(get_field(entry, "date"))
        if day is not None:
            day["calories"] += get_field(entry, "calories") or 0

    for entry in expenses:
        day = daily.get(get_field(entry, "date"))
        if day is not None:
            day["expenses"] += get_field(entry, "amount") or 0

    return daily


def _sum_days(days: List[dict]) -> dict:
    totals = {"sleep": 0, "exercise": 0, "calories": 0, "expenses": 0}
    for day in days:
        for key in totals:
            totals[key] += day[key]
    return totals


def _has_data(day: dict) -> bool:
    return day["sleep"] > 0 or day["exercise"] > 0 or day["calories"] > 0


def _custom_activity_totals(activities: Iterable[Any]) -> List[dict]:
    by_name: Dict[str, dict] = {}
    for activity in activities:
        minutes = activity_minutes(activity)
        if minutes <= 0:
            continue
        bucket = by_name.setdefault(
            get_field(activity, "name").lower(), {"total_minutes": 0, "count": 0, "daily_minutes": {}}
        )
        bucket["total_minutes"] += minutes
        bucket["count"] += 1
        day = get_field(activity, "date")
        bucket["daily_minutes"][day] = bucket["daily_minutes"].get(day, 0) + minutes

    return [
        {
            "name": name,
            "total_minutes": data["total_minutes"],
            "count": data["count"],
            "average_minutes": round_half_up(data["total_minutes"] / data["count"]),
            "daily_minutes": data["daily_minutes"],
        }
        for name, data in by_name.items()
    ]


def _period_trends(today: date, days: int, daylogs, nutrition, expenses, activities, template_names) -> dict:
    start = today - timedelta(days=days - 1)
    daily = _daily_data(start, days, daylogs, nutrition, expenses)
    data = list(daily.values())
    totals = _sum_days(data)
    days_with_data = len([d for d in data if _has_data(d)])

    def per_day(total, digits=0):
        return round_half_up(total / days_with_data, digits) if days_with_data else 0

    return {
        "period": {"start": start.isoformat(), "end": today.isoformat(), "days": days},
        "daily_data": data,
        "averages": {
            "sleep": per_day(totals["sleep"], 1),
            "exercise": per_day(totals["exercise"]),
            "calories": per_day(totals["calories"]),
            "expenses": round_half_up(totals["expenses"] / days, 2),
        },
        "totals": {
            "sleep": round_half_up(totals["sleep"], 1),
            "exercise": totals["exercise"],
            "calories": totals["calories"],
            "expenses": round_half_up(totals["expenses"], 2),
        },
        "custom_activities": _custom_activity_totals(filter_to_templates(activities, template_names)),
    }


def weekly_trends(today: date, daylogs, nutrition, expenses, activities, template_names) -> dict:
    """Last 7 days, today included."""
    return _period_trends(today, 7, daylogs, nutrition, expenses, activities, template_names)


def monthly_trends(today: date, daylogs, nutrition, expenses, activities, template_names) -> dict:
    """Last 30 days plus averages for the first four whole weeks of the window."""
    result = _period_trends(today, 30, daylogs, nutrition, expenses, activities, template_names)
    window_start = today - timedelta(days=29)

    weeks = []
    for w in range(4):
        week_start = (window_start + timedelta(days=w * 7)).isoformat()
        week_end = (window_start + timedelta(days=w * 7 + 6)).isoformat()
        week_days = [d for d in result["daily_data"] if week_start <= d["date"] <= week_end]
        totals = _sum_days(week_days)
        count = len(week_days)
        weeks.append(
            {
                "week": w + 1,
                "period": {"start": week_start, "end": week_end},
                "averages": {
                    "sleep": round_half_up(totals["sleep"] / count, 1) if count else 0,
                    "exercise": round_half_up(totals["exercise"] / count) if count else 0,
                    "calories": round_half_up(totals["calories"] / count) if count else 0,
                    "expenses": round_half_up(totals["expenses"] / count, 2) if count else 0,
                },
            }
        )

    result["weekly_breakdown"] = weeks
    return result


def _month_keys(today: date, months: int = 12) -> List[str]:
    keys = []
    for back in range(months - 1, -1, -1):
        year, month = divmod(today.year * 12 + today.month - 1 - back, 12)
        keys.append(f"{year:04d}-{month + 1:02d}")
    return keys


def _mean(values: List[float], digits: int = 0) -> float:
    return round_half_up(sum(values) / len(values), digits) if values else 0


def yearly_trends(today: date, daylogs, nutrition, expenses, activities, template_names) -> dict:
    """Per-month averages for the last 12 months, current month included."""
    months = _month_keys(today)
    buckets = {key: {"sleep": [], "exercise": [], "calories": defaultdict(float), "expenses": []} for key in months}

    for log in daylogs:
        bucket = buckets.get(get_field(log, "date")[:7])
        if bucket is None:
            continue
        hours = sleep_hours(log)
        if hours:
            bucket["sleep"].append(hours)
        minutes = exercise_minutes(log)
        if minutes:
            bucket["exercise"].append(minutes)

    for entry in nutrition:
        bucket = buckets.get(get_field(entry, "date")[:7])
        if bucket is not None:
            bucket["calories"][get_field(entry, "date")] += get_field(entry, "calories") or 0

    for entry in expenses:
        bucket = buckets.get(get_field(entry, "date")[:7])
        if bucket is not None:
            bucket["expenses"].append(get_field(entry, "amount") or 0)

    monthly_data = []
    year_sleep, year_exercise, year_calories, year_expenses = [], [], [], 0
    for key in months:
        bucket = buckets[key]
        daily_calories = list(bucket["calories"].values())
        year_sleep += bucket["sleep"]
        year_exercise += bucket["exercise"]
        year_calories += daily_calories
        year_expenses += sum(bucket["expenses"])
        monthly_data.append(
            {
                "month": MONTH_NAMES[int(key[5:]) - 1],
                "full_month": key,
                "year": int(key[:4]),
                "averages": {
                    "sleep": _mean(bucket["sleep"], 1),
                    "exercise": _mean(bucket["exercise"]),
                    "calories": _mean(daily_calories),
                },
                "totals": {"expenses": round_half_up(sum(bucket["expenses"]), 2)},
                "days_with_data": max(
                    len(bucket["sleep"]), len(bucket["exercise"]), len(daily_calories), len(bucket["expenses"])
                ),
            }
        )

    per_activity: Dict[str, Dict[str, List[float]]] = {}
    for activity in filter_to_templates(activities, template_names):
        key = get_field(activity, "date")[:7]
        minutes = activity_minutes(activity)
        if key not in buckets or minutes <= 0:
            continue
        per_activity.setdefault(get_field(activity, "name").lower(), defaultdict(list))[key].append(minutes)

    custom_activities = []
    for name, by_month in per_activity.items():
        all_minutes = [m for values in by_month.values() for m in values]
        custom_activities.append(
            {
                "name": name,
                "monthly_averages": [
                    {"month": key, "average_minutes": _mean(by_month.get(key, [])), "count": len(by_month.get(key, []))}
                    for key in months
                ],
                "yearly_total": round_half_up(sum(all_minutes)),
                "yearly_count": len(all_minutes),
                "yearly_average": _mean(all_minutes),
            }
        )

    return {
        "period": {"start": (today - timedelta(days=365)).isoformat(), "end": today.isoformat(), "months": 12},
        "monthly_data": monthly_data,
        "yearly_averages": {
            "sleep": _mean(year_sleep, 1),
            "exercise": _mean(year_exercise),
            "calories": _mean(year_calories),
            "expenses": round_half_up(year_expenses / 12, 2),
        },
        "yearly_totals": {
            "sleep": round_half_up(sum(year_sleep), 1),
            "exercise": sum(year_exercise),
            "calories": sum(year_calories),
            "expenses": round_half_up(year_expenses, 2),
        },
        "custom_activities": custom_activities,
    }


def _day_snapshot(daylog, nutrition, expenses) -> dict:
    return {
        "sleep": sleep_hours(daylog) if daylog is not None else 0,
        "exercise": exercise_minutes(daylog) if daylog is not None else 0,
        "calories": sum(get_field(e, "calories") or 0 for e in nutrition),
        "expenses": round_half_up(sum(get_field(e, "amount") or 0 for e in expenses), 2),
    }


def comparison(
    today: date,
    today_log,
    yesterday_log,
    today_nutrition,
    yesterday_nutrition,
    today_expenses,
    yesterday_expenses,
) -> dict:
    """Today against yesterday for each headline metric."""
    current = _day_snapshot(today_log, today_nutrition, today_expenses)
    previous = _day_snapshot(yesterday_log, yesterday_nutrition, yesterday_expenses)
    digits = {"sleep": 1, "exercise": 0, "calories": 0, "expenses": 2}

    daily = {}
    for metric, places in digits.items():
        change = current[metric] - previous[metric]
        daily[metric] = {
            "today": current[metric],
            "yesterday": previous[metric],
            "change": round_half_up(change, places) if places else change,
            "change_percent": round_half_up(change / previous[metric] * 100) if previous[metric] > 0 else 0,
        }

    return {
        "daily": daily,
        "dates": {"today": today.isoformat(), "yesterday": (today - timedelta(days=1)).isoformat()},
    }
