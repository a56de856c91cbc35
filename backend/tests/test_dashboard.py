"""Tests for the per-day dashboard reduction."""
from dashboard import activity_minutes, compute_dashboard, expense_totals, nutrition_totals, span_minutes
from models import CustomActivity, DayLog, ExpenseEntry, NutritionEntry


def test_missing_macros_sum_as_zero():
    totals = nutrition_totals([{"meal_type": "lunch", "calories": 300}, {"meal_type": "lunch", "calories": None}])
    assert totals["calories"] == 300
    assert totals["protein"] == 0
    assert totals["by_meal_type"] == {"lunch": {"count": 2, "calories": 300}}


def test_duration_is_used_directly():
    activities = [{"duration": 60}, {"duration": 60}]
    assert sum(activity_minutes(a) for a in activities) == 120


def test_minutes_derived_from_start_and_end():
    assert activity_minutes({"start_time": "10:00", "end_time": "12:00"}) == 120


def test_end_before_start_clamps_to_zero():
    assert activity_minutes({"start_time": "23:30", "end_time": "00:30"}) == 0


def test_overnight_span_wraps_midnight():
    assert span_minutes("23:30", "00:30", overnight=True) == 60
    assert span_minutes("22:00", "06:00", overnight=True) == 480


def test_activity_without_timing_is_zero():
    assert activity_minutes({"start_time": "10:00"}) == 0
    assert activity_minutes({}) == 0


def test_unknown_category_gets_its_own_bucket():
    totals = expense_totals([{"category": "crypto", "amount": 10}, {"category": "food", "amount": 5}])
    assert totals["total"] == 15
    assert totals["by_category"]["crypto"] == {"count": 1, "amount": 10}


def test_full_day_scenario():
    daylog = DayLog(user_id="u1", date="2024-03-10", sleep={"duration": 480}, exercise={"duration": 45})
    activities = [
        CustomActivity(user_id="u1", date="2024-03-10", name="reading", duration=60),
        CustomActivity(user_id="u1", date="2024-03-10", name="coding", duration=120),
    ]
    nutrition = [NutritionEntry(user_id="u1", date="2024-03-10", meal_type="breakfast", food_name="eggs", calories=300)]
    expenses = [
        ExpenseEntry(user_id="u1", date="2024-03-10", category="food", description="Groceries", amount=250)
    ]

    result = compute_dashboard("2024-03-10", daylog, activities, nutrition, expenses, templates=["reading"])

    assert result["date"] == "2024-03-10"
    assert result["daylog"] is daylog
    assert result["activities"]["count"] == 2
    assert result["activities"]["total_minutes"] == 180
    assert result["nutrition"]["count"] == 1
    assert result["nutrition"]["totals"]["calories"] == 300
    assert result["nutrition"]["totals"]["by_meal_type"] == {"breakfast": {"count": 1, "calories": 300}}
    assert result["expenses"]["count"] == 1
    assert result["expenses"]["totals"]["total"] == 250
    assert result["expenses"]["totals"]["by_category"] == {"food": {"count": 1, "amount": 250}}
    assert result["custom_activities"]["templates"] == ["reading"]
    assert result["custom_activities"]["today_logs"] == activities


def test_empty_day_scenario():
    result = compute_dashboard("2024-03-11", None, [], [], [])

    assert result["daylog"] is None
    assert result["activities"] == {"items": [], "count": 0, "total_minutes": 0}
    assert result["nutrition"]["count"] == 0
    assert result["nutrition"]["totals"] == {
        "calories": 0,
        "protein": 0,
        "carbs": 0,
        "fats": 0,
        "fiber": 0,
        "by_meal_type": {},
    }
    assert result["expenses"]["count"] == 0
    assert result["expenses"]["totals"] == {"total": 0, "by_category": {}}


def test_date_falls_back_to_today():
    assert compute_dashboard(None, None, [], [], [], today="2024-05-01")["date"] == "2024-05-01"


def test_same_input_gives_same_output():
    activities = [{"name": "reading", "start_time": "09:00", "end_time": "09:45"}]
    nutrition = [{"meal_type": "dinner", "calories": 700, "protein": 30}]
    expenses = [{"category": "bills", "amount": 1200}]

    first = compute_dashboard("2024-03-10", None, activities, nutrition, expenses)
    second = compute_dashboard("2024-03-10", None, activities, nutrition, expenses)
    assert first == second
    assert first["activities"]["total_minutes"] == 45
