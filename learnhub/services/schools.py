# services/schools.py
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import School
from . import crud


async def create_school(db: AsyncSession, data: Mapping[str, Any]) -> School:
    return await crud.create(db, School, data)


async def list_schools(db: AsyncSession) -> Sequence[School]:
    return await crud.fetch_all(db, select(School).order_by(School.name.asc(), School.id.asc()))


async def get_school(db: AsyncSession, school_id: int) -> Optional[School]:
    return await crud.get_by_id(db, School, school_id)


async def update_school(db: AsyncSession, school_id: int, changes: Mapping[str, Any]) -> Optional[School]:
    return await crud.update(db, School, school_id, changes)


async def delete_school(db: AsyncSession, school_id: int) -> bool:
    return await crud.delete(db, School, school_id)
