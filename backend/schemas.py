from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from models import (
    DATA_SOURCES,
    EXERCISE_TYPES,
    EXPENSE_CATEGORIES,
    MEAL_TYPES,
    PAYMENT_METHODS,
    TEMPLATE_CATEGORIES,
)

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


def check_date(value: str | None) -> str | None:
    """Validate a YYYY-MM-DD calendar date."""
    if value is None:
        return value
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError("Date must be in YYYY-MM-DD format") from e
    if parsed.strftime("%Y-%m-%d") != value:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return value


def check_choice(value: str | None, choices: tuple[str, ...], label: str) -> str | None:
    if value is None:
        return value
    if value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value


def clean_text(value: str | None) -> str | None:
    """Trim and lowercase free text that is stored normalized."""
    return value.strip().lower() if isinstance(value, str) else value


class ActivityEntryIn(BaseModel):
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    duration: float | None = Field(default=None, ge=0)
    exercise_type: str | None = None

    @field_validator("exercise_type")
    @classmethod
    def validate_exercise_type(cls, v):
        return check_choice(clean_text(v) or None, EXERCISE_TYPES, "Exercise type")


class DayLogCreate(BaseModel):
    date: str
    sleep: ActivityEntryIn | None = None
    exercise: ActivityEntryIn | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return check_date(v)


class DayLogUpdate(BaseModel):
    sleep: ActivityEntryIn | None = None
    exercise: ActivityEntryIn | None = None
    notes: str | None = Field(default=None, max_length=500)


class ActivityTiming(BaseModel):
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    duration: float | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=500)


class ActivityCreate(ActivityTiming):
    date: str
    name: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return check_date(v)


class ActivityUpdate(ActivityTiming):
    pass


class TemplateCreate(BaseModel):
    name: str
    category: str
    icon: str | None = Field(default=None, max_length=10)
    default_duration: int | None = Field(default=None, ge=1, le=1440)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return check_choice(v, TEMPLATE_CATEGORIES, "Category")


class TemplateUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    icon: str | None = Field(default=None, max_length=10)
    default_duration: int | None = Field(default=None, ge=1, le=1440)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return check_choice(v, TEMPLATE_CATEGORIES, "Category")


class NutritionUpdate(BaseModel):
    meal_type: str | None = None
    food_name: str | None = Field(default=None, min_length=1, max_length=100)
    calories: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    carbs: float | None = Field(default=None, ge=0)
    fats: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    source: str | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("meal_type")
    @classmethod
    def validate_meal_type(cls, v):
        return check_choice(v, MEAL_TYPES, "Meal type")

    @field_validator("food_name", mode="before")
    @classmethod
    def normalize_food_name(cls, v):
        return clean_text(v)

    @field_validator("source")
    @classmethod
    def validate_source(cls, v):
        return check_choice(v, DATA_SOURCES, "Source")


class NutritionCreate(NutritionUpdate):
    date: str
    meal_type: str
    food_name: str = Field(min_length=1, max_length=100)
    source: str = "manual"

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return check_date(v)


class ExpenseUpdate(BaseModel):
    category: str | None = None
    description: str | None = Field(default=None, min_length=1, max_length=200)
    amount: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, max_length=3)
    payment_method: str | None = None
    merchant: str | None = Field(default=None, max_length=100)
    source: str | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return check_choice(v, EXPENSE_CATEGORIES, "Category")

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("merchant", mode="before")
    @classmethod
    def normalize_merchant(cls, v):
        return clean_text(v)

    @field_validator("payment_method")
    @classmethod
    def validate_payment_method(cls, v):
        return check_choice(v, PAYMENT_METHODS, "Payment method")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v):
        return check_choice(v, DATA_SOURCES, "Source")


class ExpenseCreate(ExpenseUpdate):
    date: str
    category: str
    description: str = Field(min_length=1, max_length=200)
    amount: float = Field(ge=0)
    currency: str = Field(default="INR", max_length=3)
    source: str = "manual"

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return check_date(v)


class DeleteResponse(BaseModel):
    ok: bool
    message: str


class BulkDeleteResponse(BaseModel):
    ok: bool
    deleted_count: int
