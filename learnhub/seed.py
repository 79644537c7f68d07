"""Load the demo catalog (one school, a few trilingual courses) into the database.

Every course in ``data/demo_content.json`` gets the same unit template and
every unit the same lecture template. Courses are keyed by title, so running
the seed twice skips what is already there.

    python -m learnhub.seed
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from . import database
from .models import Course, Role, School, User
from .schemas import CourseCreate, LectureCreate, SchoolCreate, UnitCreate
from .services.courses import create_course
from .services.lectures import create_lecture
from .services.schools import create_school
from .services.units import create_unit
from .services.users import get_user_by_open_id, upsert_user
from .settings.config import settings
from .users import password_helper

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path(__file__).parent / "data" / "demo_content.json"
DEMO_TEACHER_OPEN_ID = "demo-teacher"


async def _demo_author(db: AsyncSession) -> User:
    if settings.OWNER_OPEN_ID:
        owner = await get_user_by_open_id(db, settings.OWNER_OPEN_ID)
        if owner is not None:
            return owner
    return await upsert_user(
        db,
        open_id=DEMO_TEACHER_OPEN_ID,
        external_id=DEMO_TEACHER_OPEN_ID,
        hashed_password=password_helper.hash(password_helper.generate()),
        first_name="Demo",
        last_name="Teacher",
        role=Role.TEACHER,
    )


async def seed_demo_content(db: AsyncSession, path: Optional[os.PathLike] = None) -> dict:
    path = Path(path or os.getenv("DEMO_CONTENT_PATH", DEFAULT_PATH))
    if not path.exists():
        logger.info("No demo content found at %s; skipping.", path)
        return {"inserted": 0, "skipped": 0}

    with open(path, "r", encoding="utf-8") as f:
        content = json.load(f)

    school_in = SchoolCreate.model_validate(content["school"])
    existing_school = (
        await db.execute(select(School.id).where(School.name == school_in.name).limit(1))
    ).scalar_one_or_none()
    if existing_school is None:
        await create_school(db, school_in.model_dump())

    author = await _demo_author(db)
    inserted = skipped = 0
    for item in content.get("courses", []):
        course_in = CourseCreate.model_validate(item)
        existing = (
            await db.execute(select(Course.id).where(Course.title == course_in.title).limit(1))
        ).scalar_one_or_none()
        if existing is not None:
            skipped += 1
            continue

        course = await create_course(db, {**course_in.model_dump(), "created_by": author.id})
        for unit_item in content.get("units", []):
            unit = await create_unit(db, UnitCreate.model_validate({**unit_item, "courseId": course.id}).model_dump())
            for lecture_item in content.get("lectures", []):
                await create_lecture(
                    db, LectureCreate.model_validate({**lecture_item, "unitId": unit.id}).model_dump()
                )
        inserted += 1

    await db.commit()
    result = {"inserted": inserted, "skipped": skipped}
    logger.info("Demo content seed complete: %s", result)
    return result


async def _main() -> None:
    database.init_engine()
    try:
        await database.verify_connection()
        async with database.session_factory()() as session:
            await seed_demo_content(session)
    finally:
        await database.dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(_main())
