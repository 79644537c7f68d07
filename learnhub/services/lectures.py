# services/lectures.py
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Attachment, Lecture
from . import crud


async def create_lecture(db: AsyncSession, data: Mapping[str, Any]) -> Lecture:
    return await crud.create(db, Lecture, data)


async def list_lectures_for_unit(db: AsyncSession, unit_id: int) -> Sequence[Lecture]:
    stmt = select(Lecture).where(Lecture.unit_id == unit_id).order_by(Lecture.order.asc(), Lecture.id.asc())
    return await crud.fetch_all(db, stmt)


async def get_lecture(db: AsyncSession, lecture_id: int) -> Optional[Lecture]:
    return await crud.get_by_id(db, Lecture, lecture_id)


async def update_lecture(db: AsyncSession, lecture_id: int, changes: Mapping[str, Any]) -> Optional[Lecture]:
    return await crud.update(db, Lecture, lecture_id, changes)


async def delete_lecture(db: AsyncSession, lecture_id: int) -> bool:
    return await crud.delete(db, Lecture, lecture_id)


# ---------------------------
# Attachments
# ---------------------------
async def create_attachment(db: AsyncSession, data: Mapping[str, Any]) -> Attachment:
    return await crud.create(db, Attachment, data)


async def list_attachments_for_lecture(db: AsyncSession, lecture_id: int) -> Sequence[Attachment]:
    stmt = select(Attachment).where(Attachment.lecture_id == lecture_id).order_by(Attachment.id.asc())
    return await crud.fetch_all(db, stmt)


async def get_attachment(db: AsyncSession, attachment_id: int) -> Optional[Attachment]:
    return await crud.get_by_id(db, Attachment, attachment_id)


async def update_attachment(db: AsyncSession, attachment_id: int, changes: Mapping[str, Any]) -> Optional[Attachment]:
    return await crud.update(db, Attachment, attachment_id, changes)


async def delete_attachment(db: AsyncSession, attachment_id: int) -> bool:
    return await crud.delete(db, Attachment, attachment_id)
