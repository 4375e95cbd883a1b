"""Script to initialize the database and seed the clinic catalog."""

import asyncio

from sqlalchemy import func, insert, select

from app.database import create_schema, engine
from app.models import exercises, staff, therapists

THERAPISTS = [
    ("Dana Whitfield", "Orthopedic"),
    ("Marcus Lee", "Sports"),
    ("Priya Raman", "Neurological"),
]

EXERCISES = [
    ("Clamshell", "Hip", 1),
    ("Glute Bridge", "Hip", 1),
    ("Straight Leg Raise", "Knee", 1),
    ("Wall Sit", "Knee", 2),
    ("Step-Up", "Knee", 3),
    ("Scapular Retraction", "Shoulder", 1),
    ("External Rotation with Band", "Shoulder", 2),
    ("Bird Dog", "Core", 2),
    ("Single Leg Balance", "Ankle", 2),
]


async def seed() -> None:
    """Insert therapists and exercises when their tables are empty."""
    async with engine.begin() as conn:
        therapist_count = await conn.scalar(select(func.count()).select_from(therapists))
        if not therapist_count:
            for name, specialty in THERAPISTS:
                result = await conn.execute(
                    insert(staff).values(name=name, role="Therapist").returning(staff.c.id)
                )
                await conn.execute(
                    insert(therapists).values(staff_id=result.scalar_one(), specialty=specialty)
                )
            print(f"✓ Seeded {len(THERAPISTS)} therapists")

        exercise_count = await conn.scalar(select(func.count()).select_from(exercises))
        if not exercise_count:
            await conn.execute(
                insert(exercises),
                [
                    {"name": name, "body_region": region, "difficulty": difficulty}
                    for name, region, difficulty in EXERCISES
                ],
            )
            print(f"✓ Seeded {len(EXERCISES)} exercises")


async def init_db() -> None:
    """Create all tables and triggers, then seed the catalog."""
    await create_schema()
    await seed()
    await engine.dispose()

    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
