"""Tests for idempotent upserts and uniqueness enforcement."""
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, delete, select

import app as app_module
from app import app
from db import create_db_and_tables, engine, get_session
from models import ActivityTemplate, CustomActivity, DayLog, ExpenseEntry, NutritionEntry


@pytest.fixture(scope="function")
def test_session():
    """Create a test database session."""
    create_db_and_tables()
    with Session(engine) as session:
        yield session
        # Clean up all test data after test
        for model in (DayLog, CustomActivity, ActivityTemplate, NutritionEntry, ExpenseEntry):
            session.exec(delete(model))
        session.commit()


@pytest.fixture(scope="function")
def client(test_session):
    """Create a test client with dependency override."""
    def get_test_session():
        yield test_session

    app.dependency_overrides[get_session] = get_test_session
    with TestClient(app, headers={"X-User-Id": "upsert-user"}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_daylog_upsert_is_idempotent(client, test_session):
    """Posting the same day log twice leaves a single row."""
    request_data = {"date": "2024-01-15", "sleep": {"duration": 420}}

    response1 = client.post("/daylogs", json=request_data)
    response2 = client.post("/daylogs", json=request_data)
    assert response1.status_code == 201
    assert response2.status_code == 201
    assert response1.json()["id"] == response2.json()["id"]

    rows = test_session.exec(select(DayLog).where(DayLog.user_id == "upsert-user")).all()
    assert len(rows) == 1


def test_activity_upsert_replaces_timing(client, test_session):
    """A duration upsert over a start/end activity drops the old pair."""
    response = client.put(
        "/activities/upsert", json={"date": "2024-01-15", "name": "Reading", "start_time": "20:00", "end_time": "21:00"}
    )
    assert response.status_code == 200
    first_id = response.json()["id"]

    response = client.put("/activities/upsert", json={"date": "2024-01-15", "name": "reading", "duration": 45})
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == first_id
    assert data["duration"] == 45
    assert data["start_time"] is None
    assert data["end_time"] is None

    rows = test_session.exec(select(CustomActivity).where(CustomActivity.name == "reading")).all()
    assert len(rows) == 1


def test_activity_upsert_still_validates(client):
    response = client.put("/activities/upsert", json={"date": "2024-01-15", "name": "reading", "start_time": "20:00"})
    assert response.status_code == 422
    assert response.json()["detail"]["errors"][0]["field"] == "end_time"


def test_store_constraint_wins_over_stale_check(client, monkeypatch):
    """When the name check misses a concurrent insert, the unique constraint still returns 409."""
    request_data = {"date": "2024-01-15", "name": "yoga", "duration": 30}
    assert client.post("/activities", json=request_data).status_code == 201

    # Simulate a concurrent writer: the name check sees no existing activities
    monkeypatch.setattr(app_module, "fetch_day", lambda *args, **kwargs: [])
    response = client.post("/activities", json=request_data)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DUPLICATE_KEY"

    # The session is usable again after the rollback
    assert client.get("/activities?date=2024-01-15").json()["pagination"]["total"] == 1


def test_duplicate_daylog_insert_is_rejected_by_store(test_session):
    """The (user, date) constraint rejects a second day log row."""
    from sqlalchemy.exc import IntegrityError

    test_session.add(DayLog(user_id="upsert-user", date="2024-01-16"))
    test_session.commit()

    test_session.add(DayLog(user_id="upsert-user", date="2024-01-16"))
    with pytest.raises(IntegrityError):
        test_session.commit()
    test_session.rollback()


def test_same_activity_name_for_different_users(client):
    request_data = {"date": "2024-01-15", "name": "yoga", "duration": 30}
    assert client.post("/activities", json=request_data).status_code == 201
    response = client.post("/activities", json=request_data, headers={"X-User-Id": "other-user"})
    assert response.status_code == 201
