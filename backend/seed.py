from datetime import UTC, datetime, timedelta

from sqlmodel import Session, select

from db import engine
from models import ActivityTemplate, CustomActivity, DayLog, ExpenseEntry, NutritionEntry

DEMO_USER = "demo-user"


def seed_database(user_id: str = DEMO_USER, days: int = 7):
    """Seed the database with a week of sample data for one user."""
    with Session(engine) as session:
        # Check if data already exists
        existing = session.exec(select(DayLog).where(DayLog.user_id == user_id)).first()
        if existing:
            print("Database already has data, skipping seed.")
            return

        today = datetime.now(UTC).date()
        records = [
            ActivityTemplate(user_id=user_id, name="reading", category="learning", icon="📚", default_duration=30),
            ActivityTemplate(user_id=user_id, name="meditation", category="selfcare", default_duration=15),
        ]

        for back in range(days):
            day = (today - timedelta(days=back)).isoformat()
            records.append(
                DayLog(
                    user_id=user_id,
                    date=day,
                    sleep={"start_time": "23:00", "end_time": "07:00"},
                    exercise={"duration": 30 + back * 5, "exercise_type": "running"},
                )
            )
            records.append(CustomActivity(user_id=user_id, date=day, name="reading", duration=20 + back))
            if back % 2 == 0:
                records.append(
                    CustomActivity(user_id=user_id, date=day, name="meditation", start_time="07:10", end_time="07:25")
                )
            records.extend(
                [
                    NutritionEntry(
                        user_id=user_id,
                        date=day,
                        meal_type="breakfast",
                        food_name="oatmeal",
                        calories=350,
                        protein=12,
                        carbs=60,
                        fats=6,
                        fiber=8,
                    ),
                    NutritionEntry(
                        user_id=user_id,
                        date=day,
                        meal_type="lunch",
                        food_name="dal rice",
                        calories=620,
                        protein=22,
                        carbs=95,
                        fats=14,
                    ),
                    ExpenseEntry(
                        user_id=user_id,
                        date=day,
                        category="food",
                        description="Lunch",
                        amount=180,
                        payment_method="upi",
                    ),
                ]
            )
            if back == 3:
                records.append(
                    ExpenseEntry(
                        user_id=user_id,
                        date=day,
                        category="transport",
                        description="Metro card top-up",
                        amount=500,
                        payment_method="card",
                    )
                )

        session.add_all(records)
        session.commit()
        print(f"Seeded database with {len(records)} sample records for {user_id}.")


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database()
