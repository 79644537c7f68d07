# services/progress.py
from typing import Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Language, Lecture, Progress, Unit
from . import crud

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Progress upsert is not supported on dialect {dialect!r}") from None


async def upsert_progress(
    db: AsyncSession,
    *,
    user_id: int,
    lecture_id: int,
    position_sec: int,
    completed: bool,
    watched_language: Language,
) -> Progress:
    """Insert the (user, lecture) row or overwrite its playback fields.

    Only position, completed flag, watched language and last_seen_at change on
    conflict; id and created_at of the existing row are kept. Concurrent
    writers race and the last one to reach the database wins.
    """
    insert = _insert_for(db)
    stmt = (
        insert(Progress)
        .values(
            user_id=user_id,
            lecture_id=lecture_id,
            position_sec=position_sec,
            completed=completed,
            watched_language=watched_language,
        )
        .on_conflict_do_update(
            index_elements=["user_id", "lecture_id"],
            set_={
                "position_sec": position_sec,
                "completed": completed,
                "watched_language": watched_language,
                "last_seen_at": func.now(),
            },
        )
    )
    await db.execute(stmt)
    stored = (
        select(Progress)
        .where(Progress.user_id == user_id, Progress.lecture_id == lecture_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stored)).scalar_one()


async def get_progress(db: AsyncSession, user_id: int, lecture_id: int) -> Optional[Progress]:
    stmt = (
        select(Progress)
        .where(Progress.user_id == user_id, Progress.lecture_id == lecture_id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalars().first()


async def list_progress_for_user(db: AsyncSession, user_id: int) -> Sequence[Progress]:
    stmt = select(Progress).where(Progress.user_id == user_id).order_by(Progress.id.asc())
    return await crud.fetch_all(db, stmt)


async def latest_progress_for_course(db: AsyncSession, user_id: int, course_id: int) -> Optional[Progress]:
    """Most recently touched progress row among the course's lectures, if any."""
    stmt = (
        select(Progress)
        .join(Lecture, Lecture.id == Progress.lecture_id)
        .join(Unit, Unit.id == Lecture.unit_id)
        .where(Progress.user_id == user_id, Unit.course_id == course_id)
        .order_by(desc(Progress.last_seen_at), desc(Progress.id))
        .limit(1)
    )
    return (await db.execute(stmt)).scalars().first()
