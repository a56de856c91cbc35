"""Tests for trend, streak and summary reductions."""
from datetime import date

import pytest

from summaries import (
    activity_stats,
    clamp_page,
    daylog_week_summary,
    expense_category_breakdown,
    expense_daily_summary,
    expense_monthly_summary,
    month_range,
    nutrition_weekly_summary,
    paginate,
    streak,
)
from trends import comparison, monthly_trends, round_half_up, today_in_timezone, weekly_trends, yearly_trends

TODAY = date(2024, 3, 10)


@pytest.fixture
def week_of_data():
    daylogs = [
        {"date": "2024-03-10", "sleep": {"start_time": "23:00", "end_time": "07:00"}, "exercise": {"duration": 30}},
        {"date": "2024-03-09", "sleep": {"duration": 450}, "exercise": {}},
    ]
    nutrition = [
        {"date": "2024-03-10", "meal_type": "lunch", "calories": 500},
        {"date": "2024-03-10", "meal_type": "dinner", "calories": 700},
        {"date": "2024-02-01", "meal_type": "lunch", "calories": 999},
    ]
    expenses = [{"date": "2024-03-08", "category": "food", "amount": 70}]
    activities = [
        {"date": "2024-03-10", "name": "reading", "duration": 30},
        {"date": "2024-03-09", "name": "Reading", "start_time": "10:00", "end_time": "10:30"},
        {"date": "2024-03-10", "name": "gaming", "duration": 90},
    ]
    return daylogs, nutrition, expenses, activities, ["reading"]


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(7.75, 1) == 7.8
    assert isinstance(round_half_up(4.0), int)


def test_unknown_timezone_raises():
    with pytest.raises(ValueError):
        today_in_timezone("Not/AZone")
    assert isinstance(today_in_timezone("Asia/Kolkata"), date)


def test_weekly_trends(week_of_data):
    result = weekly_trends(TODAY, *week_of_data)

    assert result["period"] == {"start": "2024-03-04", "end": "2024-03-10", "days": 7}
    assert len(result["daily_data"]) == 7
    day = {d["date"]: d for d in result["daily_data"]}
    assert day["2024-03-10"] == {"date": "2024-03-10", "sleep": 8.0, "exercise": 30, "calories": 1200, "expenses": 0}
    assert day["2024-03-08"]["expenses"] == 70

    # Averages divide by days with sleep, exercise or calories
    assert result["averages"] == {"sleep": 7.8, "exercise": 15, "calories": 600, "expenses": 10.0}
    assert result["totals"] == {"sleep": 15.5, "exercise": 30, "calories": 1200, "expenses": 70.0}


def test_trends_only_count_template_activities(week_of_data):
    result = weekly_trends(TODAY, *week_of_data)

    assert result["custom_activities"] == [
        {
            "name": "reading",
            "total_minutes": 60,
            "count": 2,
            "average_minutes": 30,
            "daily_minutes": {"2024-03-10": 30, "2024-03-09": 30},
        }
    ]


def test_monthly_trends_has_weekly_breakdown(week_of_data):
    result = monthly_trends(TODAY, *week_of_data)

    assert result["period"]["start"] == "2024-02-10"
    assert len(result["daily_data"]) == 30
    assert [w["week"] for w in result["weekly_breakdown"]] == [1, 2, 3, 4]
    assert result["weekly_breakdown"][0]["period"] == {"start": "2024-02-10", "end": "2024-02-16"}


def test_yearly_calories_are_averaged_per_day():
    nutrition = [
        {"date": "2024-03-10", "calories": 500},
        {"date": "2024-03-10", "calories": 700},
        {"date": "2024-03-09", "calories": 800},
    ]
    result = yearly_trends(TODAY, [], nutrition, [], [], [])

    assert len(result["monthly_data"]) == 12
    assert result["monthly_data"][0]["full_month"] == "2023-04"
    march = result["monthly_data"][-1]
    assert march["month"] == "Mar"
    assert march["averages"]["calories"] == 1000
    assert march["days_with_data"] == 2
    assert result["yearly_averages"]["calories"] == 1000


def test_comparison():
    result = comparison(
        TODAY,
        {"sleep": {"duration": 480}, "exercise": {}},
        {"sleep": {"duration": 420}, "exercise": {}},
        [{"calories": 1200}],
        [],
        [{"amount": 99.5}],
        [{"amount": 50}],
    )

    assert result["dates"] == {"today": "2024-03-10", "yesterday": "2024-03-09"}
    assert result["daily"]["sleep"] == {"today": 8.0, "yesterday": 7.0, "change": 1.0, "change_percent": 14}
    assert result["daily"]["calories"]["change_percent"] == 0
    assert result["daily"]["expenses"]["change"] == 49.5


def test_comparison_without_day_logs():
    result = comparison(TODAY, None, None, [], [], [], [])
    assert result["daily"]["sleep"] == {"today": 0, "yesterday": 0, "change": 0, "change_percent": 0}


def test_streak_counts_back_from_today():
    logs = [
        {"date": d, "sleep": {"duration": 420}, "exercise": {}}
        for d in ("2024-03-10", "2024-03-09", "2024-03-07", "2024-03-06", "2024-03-05")
    ]
    logs.append({"date": "2024-03-08", "sleep": {}, "exercise": {"start_time": "18:00"}})

    result = streak(logs, TODAY)
    assert result["current_streak"] == 2
    assert result["longest_streak"] == 3
    assert result["total_days_logged"] == 5


def test_streak_broken_today():
    result = streak([{"date": "2024-03-09", "exercise": {"duration": 20}}], TODAY)
    assert result["current_streak"] == 0
    assert result["longest_streak"] == 1


def test_daylog_week_summary():
    logs = [
        {"date": "2024-03-09", "sleep": {"start_time": "23:00", "end_time": "07:00"}, "exercise": {"duration": 45}},
        {"date": "2024-03-10", "sleep": {"duration": 420}, "exercise": {"start_time": "18:00", "end_time": "17:00"}},
    ]
    result = daylog_week_summary(logs, "2024-03-03", "2024-03-10")

    assert result["days_logged"] == 2
    assert result["sleep"] == {"total_minutes": 900, "avg_minutes_per_day": 450, "avg_hours_per_day": 7.5, "days_tracked": 2}
    assert result["exercise"] == {"total_minutes": 45, "avg_minutes_per_day": 23, "days_tracked": 2}


def test_activity_stats_most_frequent_first():
    result = activity_stats(
        [
            {"name": "coding", "date": "2024-03-09", "duration": 120},
            {"name": "reading", "date": "2024-03-09", "duration": 20},
            {"name": "reading", "date": "2024-03-10", "start_time": "21:00", "end_time": "21:30"},
        ]
    )
    assert result["total_activities"] == 3
    assert result["unique_activities"] == 2
    assert result["activities"][0] == {
        "name": "reading",
        "count": 2,
        "total_minutes": 50,
        "dates": ["2024-03-09", "2024-03-10"],
    }


def test_nutrition_weekly_summary():
    entries = [
        {"date": "2024-03-09", "calories": 900, "protein": 40},
        {"date": "2024-03-10", "calories": 500, "protein": 20},
        {"date": "2024-03-10", "calories": 700},
    ]
    result = nutrition_weekly_summary(entries, "2024-03-03", "2024-03-10")

    assert result["days_with_data"] == 2
    assert result["totals"]["calories"] == 2100
    assert result["averages"] == {"calories_per_day": 1050, "protein_per_day": 30}
    assert result["daily_breakdown"]["2024-03-10"]["entries"] == 2


def test_expense_summaries():
    entries = [
        {"date": "2024-02-03", "category": "food", "amount": 300, "payment_method": "upi"},
        {"date": "2024-02-03", "category": "transport", "amount": 100},
    ]

    daily = expense_daily_summary("2024-02-03", entries)
    assert daily["total_amount"] == 400
    assert daily["by_payment_method"] == {"upi": {"count": 1, "amount": 300}, "unknown": {"count": 1, "amount": 100}}

    monthly = expense_monthly_summary(2024, 2, entries)
    assert monthly["period"]["end_date"] == "2024-02-29"
    assert monthly["average_per_day"] == 400
    assert monthly["daily_breakdown"] == {"2024-02-03": 400}

    breakdown = expense_category_breakdown(entries, "2024-02-01", "2024-02-29")
    assert breakdown["categories"]["food"]["percentage"] == 75.0
    assert breakdown["categories"]["transport"]["percentage"] == 25.0


def test_empty_category_breakdown():
    assert expense_category_breakdown([], "2024-02-01", "2024-02-29")["categories"] == {}


def test_month_range():
    assert month_range(2024, 2) == ("2024-02-01", "2024-02-29")
    assert month_range(2023, 12) == ("2023-12-01", "2023-12-31")


def test_pagination():
    assert paginate(2, 10, 25) == {"page": 2, "limit": 10, "total": 25, "total_pages": 3, "has_more": True}
    assert paginate(1, 30, 0)["total_pages"] == 0
    assert clamp_page(0, 500, 30) == (1, 100)
    assert clamp_page(None, None, 30) == (1, 30)
