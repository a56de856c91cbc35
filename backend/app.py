import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime, timedelta

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from dashboard import compute_dashboard, today_iso
from db import create_db_and_tables, get_session
from models import ActivityTemplate, CustomActivity, DayLog, ExpenseEntry, NutritionEntry
from schemas import (
    ActivityCreate,
    ActivityUpdate,
    BulkDeleteResponse,
    DayLogCreate,
    DayLogUpdate,
    DeleteResponse,
    ExpenseCreate,
    ExpenseUpdate,
    NutritionCreate,
    NutritionUpdate,
    TemplateCreate,
    TemplateUpdate,
    check_date,
)
from summaries import (
    activity_stats,
    clamp_page,
    daylog_week_summary,
    expense_category_breakdown,
    expense_daily_summary,
    expense_monthly_summary,
    month_range,
    nutrition_daily_summary,
    nutrition_weekly_summary,
    paginate,
    streak,
)
from trends import comparison, monthly_trends, today_in_timezone, weekly_trends, yearly_trends
from validation import (
    DEFAULT_CONFIG,
    ValidationResult,
    ValidatorConfig,
    normalize_name,
    validate_day_log,
    validate_name,
    validate_timing,
)

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    create_db_and_tables()
    logger.info("Database initialized")
    yield


app = FastAPI(title="Day Tracker API", version="1.0.0", lifespan=lifespan)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Identity of the already-authenticated caller."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def get_validator_config() -> ValidatorConfig:
    return DEFAULT_CONFIG


def parse_date(value: str | None) -> str | None:
    try:
        return check_date(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD") from e


def utc_today() -> date:
    return datetime.now(UTC).date()


def reject_invalid(result: ValidationResult, message: str = "Validation failed"):
    """Turn a failed validation result into a 422 (or 409 for a name already in use)."""
    if result.ok:
        return
    if result.is_conflict:
        raise HTTPException(
            status_code=409,
            detail={"message": result.errors[0].message, "code": "DUPLICATE_KEY", "errors": result.to_list()},
        )
    raise HTTPException(status_code=422, detail={"message": message, "errors": result.to_list()})


def commit_or_conflict(session: Session, message: str):
    """Commit, mapping a unique-constraint violation to 409."""
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Uniqueness conflict: {message}")
        raise HTTPException(status_code=409, detail={"message": message, "code": "DUPLICATE_KEY"}) from e


def date_filters(model, user_id: str, day: str | None = None, start_date: str | None = None, end_date: str | None = None):
    conditions = [model.user_id == user_id]
    if day:
        conditions.append(model.date == day)
    else:
        if start_date:
            conditions.append(model.date >= start_date)
        if end_date:
            conditions.append(model.date <= end_date)
    return conditions


def fetch_page(session: Session, model, conditions, order_by, page: int, limit: int):
    total = session.exec(select(func.count()).select_from(model).where(*conditions)).one()
    items = session.exec(
        select(model).where(*conditions).order_by(*order_by).offset((page - 1) * limit).limit(limit)
    ).all()
    return items, paginate(page, limit, total)


def fetch_day(session: Session, model, user_id: str, day: str):
    return session.exec(
        select(model).where(model.user_id == user_id, model.date == day).order_by(col(model.created_at).desc())
    ).all()


def fetch_range(session: Session, model, user_id: str, start_date: str, end_date: str):
    return session.exec(
        select(model).where(*date_filters(model, user_id, start_date=start_date, end_date=end_date)).order_by(model.date)
    ).all()


def active_template_names(session: Session, user_id: str) -> list[str]:
    return list(
        session.exec(
            select(ActivityTemplate.name).where(
                ActivityTemplate.user_id == user_id, ActivityTemplate.is_active == True  # noqa: E712
            )
        ).all()
    )


def get_owned(session: Session, model, record_id: int, user_id: str, label: str):
    record = session.exec(select(model).where(model.id == record_id, model.user_id == user_id)).first()
    if not record:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


def slot(entry) -> dict | None:
    return entry.model_dump(exclude_none=True) if entry is not None else None


# Dashboard


@app.get("/dashboard")
def get_dashboard(
    date: str = Query(None, description="Day in YYYY-MM-DD format (defaults to today)"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Aggregated view of one day: day log, activities, nutrition and expenses."""
    target_date = parse_date(date) or today_iso()
    logger.info(f"Dashboard request for user: {user_id}, date: {target_date}")

    try:
        daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == target_date)).first()
        activities = fetch_day(session, CustomActivity, user_id, target_date)
        nutrition = fetch_day(session, NutritionEntry, user_id, target_date)
        expenses = fetch_day(session, ExpenseEntry, user_id, target_date)
        templates = active_template_names(session, user_id)
    except Exception as e:
        logger.error(f"Error getting dashboard: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return compute_dashboard(target_date, daylog, activities, nutrition, expenses, templates=templates)


# Day logs


@app.get("/daylogs")
def list_daylogs(
    page: int = Query(1),
    limit: int = Query(30),
    start_date: str = Query(None),
    end_date: str = Query(None),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Day logs, newest first."""
    page, limit = clamp_page(page, limit, 30)
    conditions = date_filters(DayLog, user_id, start_date=parse_date(start_date), end_date=parse_date(end_date))
    items, pagination = fetch_page(session, DayLog, conditions, [col(DayLog.date).desc()], page, limit)
    return {"items": items, "pagination": pagination}


@app.get("/daylogs/today", response_model=DayLog)
def get_today_daylog(user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    """Today's day log, created empty when missing."""
    today = today_iso()
    daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == today)).first()
    if daylog:
        return daylog

    daylog = DayLog(user_id=user_id, date=today)
    session.add(daylog)
    commit_or_conflict(session, "DayLog for today already exists")
    session.refresh(daylog)
    logger.info(f"Created empty day log for user: {user_id}, date: {today}")
    return daylog


@app.get("/daylogs/summary/week")
def get_daylog_week_summary(user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    today = utc_today()
    start_date = (today - timedelta(days=7)).isoformat()
    end_date = today.isoformat()
    daylogs = fetch_range(session, DayLog, user_id, start_date, end_date)
    return daylog_week_summary(daylogs, start_date, end_date)


@app.get("/daylogs/streak")
def get_streak(user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    today = utc_today()
    daylogs = fetch_range(session, DayLog, user_id, (today - timedelta(days=365)).isoformat(), today.isoformat())
    return streak(daylogs, today)


@app.get("/daylogs/{date}", response_model=DayLog)
def get_daylog(date: str, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == parse_date(date))).first()
    if not daylog:
        raise HTTPException(status_code=404, detail="DayLog not found for this date")
    return daylog


@app.post("/daylogs", response_model=DayLog, status_code=201)
def upsert_daylog(
    request: DayLogCreate, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)
):
    """Create or update the day log for (user, date)."""
    logger.info(f"DayLog upsert for user: {user_id}, date: {request.date}")
    sleep, exercise = slot(request.sleep), slot(request.exercise)
    reject_invalid(validate_day_log(sleep, exercise))

    now = datetime.now(UTC)
    daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == request.date)).first()
    if daylog:
        if sleep is not None:
            daylog.sleep = sleep
        if exercise is not None:
            daylog.exercise = exercise
        if request.notes is not None:
            daylog.notes = request.notes
        daylog.updated_at = now
    else:
        daylog = DayLog(
            user_id=user_id,
            date=request.date,
            sleep=sleep or {},
            exercise=exercise or {},
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
    session.add(daylog)
    commit_or_conflict(session, "DayLog for this date already exists")
    session.refresh(daylog)
    return daylog


@app.put("/daylogs/{date}", response_model=DayLog)
def update_daylog(
    date: str,
    request: DayLogUpdate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == parse_date(date))).first()
    if not daylog:
        raise HTTPException(status_code=404, detail="DayLog not found")

    sleep = slot(request.sleep) if request.sleep is not None else daylog.sleep
    exercise = slot(request.exercise) if request.exercise is not None else daylog.exercise
    reject_invalid(validate_day_log(sleep, exercise))

    daylog.sleep = sleep
    daylog.exercise = exercise
    if request.notes is not None:
        daylog.notes = request.notes
    daylog.updated_at = datetime.now(UTC)
    session.add(daylog)
    session.commit()
    session.refresh(daylog)
    return daylog


@app.delete("/daylogs/{date}", response_model=DeleteResponse)
def delete_daylog(date: str, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    logger.info(f"Delete day log request for user: {user_id}, date: {date}")
    daylog = session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == parse_date(date))).first()
    if not daylog:
        raise HTTPException(status_code=404, detail="DayLog not found")
    session.delete(daylog)
    session.commit()
    return DeleteResponse(ok=True, message="DayLog deleted successfully")


# Activity templates (declared before /activities/{activity_id})


@app.get("/activities/templates")
def list_templates(
    include_inactive: bool = Query(False),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    stmt = select(ActivityTemplate).where(ActivityTemplate.user_id == user_id)
    if not include_inactive:
        stmt = stmt.where(ActivityTemplate.is_active == True)  # noqa: E712
    templates = session.exec(stmt.order_by(ActivityTemplate.category, ActivityTemplate.name)).all()
    return {"templates": templates, "count": len(templates)}


@app.get("/activities/templates/{template_id}", response_model=ActivityTemplate)
def get_template(template_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return get_owned(session, ActivityTemplate, template_id, user_id, "Template")


@app.post("/activities/templates", response_model=ActivityTemplate, status_code=201)
def create_template(
    request: TemplateCreate,
    response: Response,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    config: ValidatorConfig = Depends(get_validator_config),
):
    """Create a template, or reactivate a soft-deleted one with the same name."""
    name = normalize_name(request.name)
    logger.info(f"Create template request for user: {user_id}, name: {name}")

    existing = session.exec(
        select(ActivityTemplate).where(ActivityTemplate.user_id == user_id, ActivityTemplate.name == name)
    ).first()
    active_names = [existing.name] if existing and existing.is_active else []
    reject_invalid(validate_name(name, config.reserved_names, active_names))

    now = datetime.now(UTC)
    if existing:
        existing.category = request.category
        existing.icon = request.icon
        existing.default_duration = request.default_duration
        existing.is_active = True
        existing.updated_at = now
        template = existing
        response.status_code = 200
    else:
        template = ActivityTemplate(
            user_id=user_id,
            name=name,
            category=request.category,
            icon=request.icon,
            default_duration=request.default_duration,
            created_at=now,
            updated_at=now,
        )
    session.add(template)
    commit_or_conflict(session, "An activity template with this name already exists")
    session.refresh(template)
    return template


@app.put("/activities/templates/{template_id}", response_model=ActivityTemplate)
def update_template(
    template_id: int,
    request: TemplateUpdate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    config: ValidatorConfig = Depends(get_validator_config),
):
    template = session.exec(
        select(ActivityTemplate).where(
            ActivityTemplate.id == template_id,
            ActivityTemplate.user_id == user_id,
            ActivityTemplate.is_active == True,  # noqa: E712
        )
    ).first()
    if not template:
        raise HTTPException(status_code=404, detail="Template not found or has been deleted")

    updates = request.model_dump(exclude_none=True)
    if "name" in updates:
        other_names = session.exec(
            select(ActivityTemplate.name).where(
                ActivityTemplate.user_id == user_id, ActivityTemplate.id != template_id
            )
        ).all()
        reject_invalid(validate_name(updates["name"], config.reserved_names, other_names))
        updates["name"] = normalize_name(updates["name"])

    for key, value in updates.items():
        setattr(template, key, value)
    template.updated_at = datetime.now(UTC)
    session.add(template)
    commit_or_conflict(session, "An activity template with this name already exists")
    session.refresh(template)
    return template


@app.delete("/activities/templates/{template_id}", response_model=DeleteResponse)
def delete_template(template_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    """Soft delete: the template is hidden but can be restored."""
    template = get_owned(session, ActivityTemplate, template_id, user_id, "Template")
    if not template.is_active:
        raise HTTPException(status_code=404, detail="Template not found or already deleted")
    template.is_active = False
    template.updated_at = datetime.now(UTC)
    session.add(template)
    session.commit()
    return DeleteResponse(ok=True, message="Template deleted successfully")


@app.patch("/activities/templates/{template_id}/restore", response_model=ActivityTemplate)
def restore_template(template_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    template = get_owned(session, ActivityTemplate, template_id, user_id, "Template")
    if template.is_active:
        raise HTTPException(status_code=404, detail="Template not found or is already active")
    template.is_active = True
    template.updated_at = datetime.now(UTC)
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


# Custom activities


@app.get("/activities")
def list_activities(
    date: str = Query(None),
    name: str = Query(None, description="Case-insensitive name filter"),
    start_date: str = Query(None),
    end_date: str = Query(None),
    page: int = Query(1),
    limit: int = Query(50),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    page, limit = clamp_page(page, limit, 50)
    conditions = date_filters(
        CustomActivity, user_id, parse_date(date), parse_date(start_date), parse_date(end_date)
    )
    if name:
        conditions.append(col(CustomActivity.name).contains(name.strip().lower()))
    items, pagination = fetch_page(
        session,
        CustomActivity,
        conditions,
        [col(CustomActivity.date).desc(), col(CustomActivity.created_at).desc()],
        page,
        limit,
    )
    return {"activities": items, "pagination": pagination}


@app.get("/activities/stats")
def get_activity_stats(
    start_date: str = Query(None),
    end_date: str = Query(None),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Most frequent activities over a range (default: last 30 days)."""
    today = utc_today()
    start_date = parse_date(start_date) or (today - timedelta(days=30)).isoformat()
    end_date = parse_date(end_date) or today.isoformat()
    return activity_stats(fetch_range(session, CustomActivity, user_id, start_date, end_date))


@app.get("/activities/date/{date}", response_model=list[CustomActivity])
def get_activities_by_date(date: str, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return fetch_day(session, CustomActivity, user_id, parse_date(date))


@app.put("/activities/upsert", response_model=CustomActivity)
def upsert_activity(
    request: ActivityCreate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    config: ValidatorConfig = Depends(get_validator_config),
):
    """Create or update the activity for (user, date, name).

    The timing fields of the request replace the stored ones as a unit.
    """
    name = normalize_name(request.name)
    logger.info(f"Activity upsert for user: {user_id}, date: {request.date}, name: {name}")
    errors = validate_name(name, config.reserved_names).errors + validate_timing(request, empty_allowed=False).errors
    reject_invalid(ValidationResult(errors))

    now = datetime.now(UTC)
    activity = session.exec(
        select(CustomActivity).where(
            CustomActivity.user_id == user_id, CustomActivity.date == request.date, CustomActivity.name == name
        )
    ).first()
    if activity:
        activity.start_time = request.start_time
        activity.end_time = request.end_time
        activity.duration = request.duration
        if request.notes is not None:
            activity.notes = request.notes
        activity.updated_at = now
    else:
        activity = CustomActivity(
            user_id=user_id,
            date=request.date,
            name=name,
            start_time=request.start_time,
            end_time=request.end_time,
            duration=request.duration,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
    session.add(activity)
    commit_or_conflict(session, "Activity with this name already exists for this date")
    session.refresh(activity)
    return activity


@app.get("/activities/{activity_id}", response_model=CustomActivity)
def get_activity(activity_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return get_owned(session, CustomActivity, activity_id, user_id, "Activity")


@app.post("/activities", response_model=CustomActivity, status_code=201)
def create_activity(
    request: ActivityCreate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    config: ValidatorConfig = Depends(get_validator_config),
):
    name = normalize_name(request.name)
    logger.info(f"Create activity request for user: {user_id}, date: {request.date}, name: {name}")
    existing = [a.name for a in fetch_day(session, CustomActivity, user_id, request.date)]
    errors = (
        validate_name(name, config.reserved_names, existing).errors
        + validate_timing(request, empty_allowed=False).errors
    )
    reject_invalid(ValidationResult(errors))

    now = datetime.now(UTC)
    activity = CustomActivity(
        user_id=user_id,
        date=request.date,
        name=name,
        start_time=request.start_time,
        end_time=request.end_time,
        duration=request.duration,
        notes=request.notes,
        created_at=now,
        updated_at=now,
    )
    session.add(activity)
    commit_or_conflict(session, "Activity with this name already exists for this date")
    session.refresh(activity)
    return activity


@app.put("/activities/{activity_id}", response_model=CustomActivity)
def update_activity(
    activity_id: int,
    request: ActivityUpdate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Partial update; send an explicit null to clear a timing field."""
    activity = get_owned(session, CustomActivity, activity_id, user_id, "Activity")
    updates = request.model_dump(exclude_unset=True)
    merged = {
        key: updates.get(key, getattr(activity, key)) for key in ("start_time", "end_time", "duration")
    }
    reject_invalid(validate_timing(merged, empty_allowed=False))

    for key, value in updates.items():
        setattr(activity, key, value)
    activity.updated_at = datetime.now(UTC)
    session.add(activity)
    session.commit()
    session.refresh(activity)
    return activity


@app.delete("/activities/{activity_id}", response_model=DeleteResponse)
def delete_activity(activity_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    logger.info(f"Delete activity request for ID: {activity_id}")
    activity = get_owned(session, CustomActivity, activity_id, user_id, "Activity")
    session.delete(activity)
    session.commit()
    return DeleteResponse(ok=True, message="Activity deleted")


# Nutrition


@app.get("/nutrition")
def list_nutrition(
    date: str = Query(None),
    meal_type: str = Query(None),
    start_date: str = Query(None),
    end_date: str = Query(None),
    page: int = Query(1),
    limit: int = Query(50),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    page, limit = clamp_page(page, limit, 50)
    conditions = date_filters(
        NutritionEntry, user_id, parse_date(date), parse_date(start_date), parse_date(end_date)
    )
    if meal_type:
        conditions.append(NutritionEntry.meal_type == meal_type)
    items, pagination = fetch_page(
        session,
        NutritionEntry,
        conditions,
        [col(NutritionEntry.date).desc(), col(NutritionEntry.created_at).desc()],
        page,
        limit,
    )
    return {"entries": items, "pagination": pagination}


@app.get("/nutrition/summary/daily")
def get_nutrition_daily_summary(
    date: str = Query(None),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    target_date = parse_date(date) or today_iso()
    return nutrition_daily_summary(target_date, fetch_day(session, NutritionEntry, user_id, target_date))


@app.get("/nutrition/summary/weekly")
def get_nutrition_weekly_summary(user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    today = utc_today()
    start_date, end_date = (today - timedelta(days=7)).isoformat(), today.isoformat()
    entries = fetch_range(session, NutritionEntry, user_id, start_date, end_date)
    return nutrition_weekly_summary(entries, start_date, end_date)


@app.get("/nutrition/{entry_id}", response_model=NutritionEntry)
def get_nutrition(entry_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return get_owned(session, NutritionEntry, entry_id, user_id, "Nutrition entry")


@app.post("/nutrition", response_model=NutritionEntry, status_code=201)
def create_nutrition(
    request: NutritionCreate, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)
):
    logger.info(f"Create nutrition entry for user: {user_id}, date: {request.date}, meal: {request.meal_type}")
    now = datetime.now(UTC)
    entry = NutritionEntry(user_id=user_id, created_at=now, updated_at=now, **request.model_dump())
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@app.put("/nutrition/{entry_id}", response_model=NutritionEntry)
def update_nutrition(
    entry_id: int,
    request: NutritionUpdate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    entry = get_owned(session, NutritionEntry, entry_id, user_id, "Nutrition entry")
    for key, value in request.model_dump(exclude_none=True).items():
        setattr(entry, key, value)
    entry.updated_at = datetime.now(UTC)
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@app.delete("/nutrition/date/{date}", response_model=BulkDeleteResponse)
def delete_nutrition_for_date(date: str, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    entries = fetch_day(session, NutritionEntry, user_id, parse_date(date))
    for entry in entries:
        session.delete(entry)
    session.commit()
    logger.info(f"Deleted {len(entries)} nutrition entries for user: {user_id}, date: {date}")
    return BulkDeleteResponse(ok=True, deleted_count=len(entries))


@app.delete("/nutrition/{entry_id}", response_model=DeleteResponse)
def delete_nutrition(entry_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    entry = get_owned(session, NutritionEntry, entry_id, user_id, "Nutrition entry")
    session.delete(entry)
    session.commit()
    return DeleteResponse(ok=True, message="Entry deleted")


# Expenses


@app.get("/expenses")
def list_expenses(
    date: str = Query(None),
    category: str = Query(None),
    start_date: str = Query(None),
    end_date: str = Query(None),
    page: int = Query(1),
    limit: int = Query(50),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    page, limit = clamp_page(page, limit, 50)
    conditions = date_filters(ExpenseEntry, user_id, parse_date(date), parse_date(start_date), parse_date(end_date))
    if category:
        conditions.append(ExpenseEntry.category == category)
    items, pagination = fetch_page(
        session,
        ExpenseEntry,
        conditions,
        [col(ExpenseEntry.date).desc(), col(ExpenseEntry.created_at).desc()],
        page,
        limit,
    )
    return {"expenses": items, "total_amount": sum(e.amount for e in items), "pagination": pagination}


@app.get("/expenses/summary/daily")
def get_expense_daily_summary(
    date: str = Query(None),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    target_date = parse_date(date) or today_iso()
    return expense_daily_summary(target_date, fetch_day(session, ExpenseEntry, user_id, target_date))


@app.get("/expenses/summary/monthly")
def get_expense_monthly_summary(
    month: int = Query(None, ge=1, le=12),
    year: int = Query(None, ge=1970, le=9999),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    today = utc_today()
    year, month = year or today.year, month or today.month
    start_date, end_date = month_range(year, month)
    entries = fetch_range(session, ExpenseEntry, user_id, start_date, end_date)
    return expense_monthly_summary(year, month, entries)


@app.get("/expenses/by-category")
def get_expense_category_breakdown(
    start_date: str = Query(None),
    end_date: str = Query(None),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Category breakdown with percentages (default: current month)."""
    today = utc_today()
    default_start, default_end = month_range(today.year, today.month)
    start_date = parse_date(start_date) or default_start
    end_date = parse_date(end_date) or default_end
    entries = fetch_range(session, ExpenseEntry, user_id, start_date, end_date)
    return expense_category_breakdown(entries, start_date, end_date)


@app.get("/expenses/{expense_id}", response_model=ExpenseEntry)
def get_expense(expense_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return get_owned(session, ExpenseEntry, expense_id, user_id, "Expense")


@app.post("/expenses", response_model=ExpenseEntry, status_code=201)
def create_expense(
    request: ExpenseCreate, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)
):
    logger.info(f"Create expense for user: {user_id}, date: {request.date}, category: {request.category}")
    now = datetime.now(UTC)
    expense = ExpenseEntry(user_id=user_id, created_at=now, updated_at=now, **request.model_dump())
    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@app.put("/expenses/{expense_id}", response_model=ExpenseEntry)
def update_expense(
    expense_id: int,
    request: ExpenseUpdate,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    expense = get_owned(session, ExpenseEntry, expense_id, user_id, "Expense")
    for key, value in request.model_dump(exclude_none=True).items():
        setattr(expense, key, value)
    expense.updated_at = datetime.now(UTC)
    session.add(expense)
    session.commit()
    session.refresh(expense)
    return expense


@app.delete("/expenses/date/{date}", response_model=BulkDeleteResponse)
def delete_expenses_for_date(date: str, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    expenses = fetch_day(session, ExpenseEntry, user_id, parse_date(date))
    for expense in expenses:
        session.delete(expense)
    session.commit()
    logger.info(f"Deleted {len(expenses)} expenses for user: {user_id}, date: {date}")
    return BulkDeleteResponse(ok=True, deleted_count=len(expenses))


@app.delete("/expenses/{expense_id}", response_model=DeleteResponse)
def delete_expense(expense_id: int, user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    expense = get_owned(session, ExpenseEntry, expense_id, user_id, "Expense")
    session.delete(expense)
    session.commit()
    return DeleteResponse(ok=True, message="Expense deleted")


# Trends


def resolve_today(tz: str) -> date:
    try:
        return today_in_timezone(tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def fetch_trend_inputs(session: Session, user_id: str, start_date: str, end_date: str):
    return (
        fetch_range(session, DayLog, user_id, start_date, end_date),
        fetch_range(session, NutritionEntry, user_id, start_date, end_date),
        fetch_range(session, ExpenseEntry, user_id, start_date, end_date),
        fetch_range(session, CustomActivity, user_id, start_date, end_date),
        active_template_names(session, user_id),
    )


@app.get("/trends/weekly")
def get_weekly_trends(
    tz: str = Query("UTC", description="IANA timezone used to resolve today"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    today = resolve_today(tz)
    inputs = fetch_trend_inputs(session, user_id, (today - timedelta(days=6)).isoformat(), today.isoformat())
    return weekly_trends(today, *inputs)


@app.get("/trends/monthly")
def get_monthly_trends(
    tz: str = Query("UTC"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    today = resolve_today(tz)
    inputs = fetch_trend_inputs(session, user_id, (today - timedelta(days=29)).isoformat(), today.isoformat())
    return monthly_trends(today, *inputs)


@app.get("/trends/yearly")
def get_yearly_trends(
    tz: str = Query("UTC"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    today = resolve_today(tz)
    inputs = fetch_trend_inputs(session, user_id, (today - timedelta(days=365)).isoformat(), today.isoformat())
    return yearly_trends(today, *inputs)


@app.get("/trends/comparison")
def get_comparison(
    tz: str = Query("UTC"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Today against yesterday."""
    today = resolve_today(tz)
    current, previous = today.isoformat(), (today - timedelta(days=1)).isoformat()

    def daylog_for(day):
        return session.exec(select(DayLog).where(DayLog.user_id == user_id, DayLog.date == day)).first()

    return comparison(
        today,
        daylog_for(current),
        daylog_for(previous),
        fetch_day(session, NutritionEntry, user_id, current),
        fetch_day(session, NutritionEntry, user_id, previous),
        fetch_day(session, ExpenseEntry, user_id, current),
        fetch_day(session, ExpenseEntry, user_id, previous),
    )


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Day Tracker API", "docs": "/docs"}
