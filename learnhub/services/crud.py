# services/crud.py
"""Uniform create/get/list/update/delete helpers shared by every entity module.

Nothing here commits: callers (the RPC handlers) own the transaction. Storage
errors are never caught, so an IntegrityError from a duplicate pair reaches
the caller unchanged.
"""
from typing import Any, Mapping, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Base

M = TypeVar("M", bound=Base)


async def create(db: AsyncSession, model: Type[M], data: Mapping[str, Any]) -> M:
    row = model(**dict(data))
    db.add(row)
    await db.flush()
    # pull server-side defaults (created_at, ...) while we are still in async context
    await db.refresh(row)
    return row


async def get_by_id(db: AsyncSession, model: Type[M], row_id: int) -> Optional[M]:
    return await db.get(model, row_id)


async def update(db: AsyncSession, model: Type[M], row_id: int, changes: Mapping[str, Any]) -> Optional[M]:
    """Write only the supplied keys; everything else keeps its stored value."""
    row = await db.get(model, row_id)
    if row is None:
        return None
    for key, value in changes.items():
        setattr(row, key, value)
    await db.flush()
    await db.refresh(row)
    return row


async def delete(db: AsyncSession, model: Type[M], row_id: int) -> bool:
    row = await db.get(model, row_id)
    if row is None:
        return False
    await db.delete(row)
    await db.flush()
    return True


def paginate(stmt: Select, limit: Optional[int] = None, offset: Optional[int] = None) -> Select:
    if limit:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    return stmt


async def fetch_all(db: AsyncSession, stmt: Select) -> Sequence[Any]:
    return (await db.execute(stmt)).scalars().all()


def contains(column, needle: str):
    return column.ilike(f"%{needle}%")


__all__ = ["create", "get_by_id", "update", "delete", "paginate", "fetch_all", "contains", "select"]
