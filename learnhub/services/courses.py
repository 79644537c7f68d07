# services/courses.py
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Course, Unit, Visibility
from . import crud


async def create_course(db: AsyncSession, data: Mapping[str, Any]) -> Course:
    values = dict(data)
    values.setdefault("tags", [])
    values["tags_ar"] = values.get("tags_ar") or []
    values["tags_he"] = values.get("tags_he") or []
    return await crud.create(db, Course, values)


async def list_courses(
    db: AsyncSession,
    *,
    visibility: Optional[Visibility] = None,
    created_by: Optional[int] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Sequence[Course]:
    stmt = select(Course)
    if visibility:
        stmt = stmt.where(Course.visibility == visibility)
    if created_by:
        stmt = stmt.where(Course.created_by == created_by)
    if search:
        stmt = stmt.where(or_(crud.contains(Course.title, search), crud.contains(Course.description, search)))
    # newest first; id breaks ties within the same timestamp
    stmt = stmt.order_by(desc(Course.created_at), desc(Course.id))
    return await crud.fetch_all(db, crud.paginate(stmt, limit, offset))


async def get_course(db: AsyncSession, course_id: int) -> Optional[Course]:
    return await crud.get_by_id(db, Course, course_id)


async def get_course_with_content(db: AsyncSession, course_id: int) -> Optional[Course]:
    """Course with its units and each unit's lectures, both in display order."""
    stmt = (
        select(Course)
        .options(selectinload(Course.units).selectinload(Unit.lectures))
        .where(Course.id == course_id)
    )
    return (await db.execute(stmt)).scalars().first()


async def update_course(db: AsyncSession, course_id: int, changes: Mapping[str, Any]) -> Optional[Course]:
    # the creator never changes after insert
    changes = {k: v for k, v in changes.items() if k != "created_by"}
    return await crud.update(db, Course, course_id, changes)


async def delete_course(db: AsyncSession, course_id: int) -> bool:
    return await crud.delete(db, Course, course_id)


async def publish_course(db: AsyncSession, course_id: int) -> Optional[Course]:
    return await crud.update(db, Course, course_id, {"published_at": datetime.now(timezone.utc)})
