# services/units.py
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Unit
from . import crud


async def create_unit(db: AsyncSession, data: Mapping[str, Any]) -> Unit:
    return await crud.create(db, Unit, data)


async def list_units_for_course(db: AsyncSession, course_id: int) -> Sequence[Unit]:
    stmt = select(Unit).where(Unit.course_id == course_id).order_by(Unit.order.asc(), Unit.id.asc())
    return await crud.fetch_all(db, stmt)


async def get_unit(db: AsyncSession, unit_id: int) -> Optional[Unit]:
    return await crud.get_by_id(db, Unit, unit_id)


async def update_unit(db: AsyncSession, unit_id: int, changes: Mapping[str, Any]) -> Optional[Unit]:
    return await crud.update(db, Unit, unit_id, changes)


async def delete_unit(db: AsyncSession, unit_id: int) -> bool:
    return await crud.delete(db, Unit, unit_id)
