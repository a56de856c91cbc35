from datetime import UTC, datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel, UniqueConstraint

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
EXPENSE_CATEGORIES = ("food", "transport", "shopping", "bills", "entertainment", "health", "other")
PAYMENT_METHODS = ("cash", "card", "upi", "netbanking", "other")
DATA_SOURCES = ("manual", "imported")
TEMPLATE_CATEGORIES = ("health", "learning", "hobbies", "work", "social", "selfcare", "other")
EXERCISE_TYPES = ("running", "walking", "cycling", "swimming", "gym", "yoga", "sports", "cardio", "other")


def utcnow() -> datetime:
    return datetime.now(UTC)


class DayLog(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "date", name="uniq_daylog_user_date"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    date: str = Field(index=True)  # YYYY-MM-DD format
    # Embedded activity entries: {"start_time", "end_time", "duration"[, "exercise_type"]}
    sleep: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    exercise: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    notes: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default=None)


class CustomActivity(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "date", "name", name="uniq_activity_user_date_name"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    date: str = Field(index=True)
    name: str = Field(index=True)  # Normalized: lower(trim(name))
    start_time: str | None = Field(default=None)  # HH:mm, 24-hour
    end_time: str | None = Field(default=None)
    duration: float | None = Field(default=None)  # minutes
    notes: str | None = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default=None)


class ActivityTemplate(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "name", name="uniq_template_user_name"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    category: str
    icon: str | None = Field(default=None, max_length=10)
    default_duration: int | None = Field(default=None)
    is_active: bool = Field(default=True, index=True)  # Soft delete flag
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default=None)


class NutritionEntry(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    date: str = Field(index=True)
    meal_type: str = Field(index=True)
    food_name: str
    calories: float | None = Field(default=None)
    protein: float | None = Field(default=None)
    carbs: float | None = Field(default=None)
    fats: float | None = Field(default=None)
    fiber: float | None = Field(default=None)
    source: str = Field(default="manual")
    notes: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default=None)


class ExpenseEntry(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    date: str = Field(index=True)
    category: str = Field(index=True)
    description: str
    amount: float
    currency: str = Field(default="INR")
    payment_method: str | None = Field(default=None)
    merchant: str | None = Field(default=None)  # Normalized: lower(trim(merchant))
    source: str = Field(default="manual")
    notes: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default=None)
