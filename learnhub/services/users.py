# services/users.py
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Language, Role, User
from ..settings.config import settings
from . import crud

logger = logging.getLogger(__name__)

_UNSET = object()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else None


async def upsert_user(
    db: AsyncSession,
    *,
    open_id: str,
    external_id: str,
    hashed_password: str,
    first_name: str,
    last_name: str,
    email=_UNSET,
    role: Optional[Role] = None,
    last_signed_in: Optional[datetime] = None,
) -> User:
    """Insert the user keyed by ``open_id`` or refresh its mutable fields.

    The password hash is only written on insert. The configured owner
    open-id is always stored as ADMIN unless a role is passed explicitly.
    """
    if not open_id:
        raise ValueError("User open_id is required for upsert")

    if role is None and settings.OWNER_OPEN_ID and open_id == settings.OWNER_OPEN_ID:
        role = Role.ADMIN
    signed_in = last_signed_in or _now()

    user = (await db.execute(select(User).where(User.open_id == open_id))).scalars().first()
    if user is None:
        values: dict[str, Any] = {
            "open_id": open_id,
            "external_id": external_id,
            "hashed_password": hashed_password,
            "first_name": first_name,
            "last_name": last_name,
            "last_signed_in": signed_in,
        }
        if email is not _UNSET:
            values["email"] = _clean_email(email)
        if role is not None:
            values["role"] = role
        user = await crud.create(db, User, values)
        logger.info("User %s created (open_id=%s)", user.id, open_id)
        return user

    user.external_id = external_id
    user.first_name = first_name
    user.last_name = last_name
    if email is not _UNSET:
        user.email = _clean_email(email)
    if role is not None:
        user.role = role
    user.last_signed_in = signed_in
    await db.flush()
    await db.refresh(user)
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    return await crud.get_by_id(db, User, user_id)


async def get_user_by_open_id(db: AsyncSession, open_id: str) -> Optional[User]:
    return (await db.execute(select(User).where(User.open_id == open_id).limit(1))).scalars().first()


async def get_user_by_external_id(db: AsyncSession, external_id: str) -> Optional[User]:
    return (await db.execute(select(User).where(User.external_id == external_id).limit(1))).scalars().first()


async def update_user(db: AsyncSession, user_id: int, changes: Mapping[str, Any]) -> Optional[User]:
    return await crud.update(db, User, user_id, changes)


async def update_user_language(db: AsyncSession, user_id: int, language: Language) -> Optional[User]:
    return await crud.update(db, User, user_id, {"preferred_language": language})


async def record_sign_in(db: AsyncSession, user: User) -> None:
    now = _now()
    user.last_login_at = now
    user.last_signed_in = now
    user.failed_login_attempts = 0
    await db.flush()


async def list_students(
    db: AsyncSession,
    *,
    school_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Sequence[User]:
    stmt = select(User).where(User.role == Role.STUDENT)
    if school_id:
        stmt = stmt.where(User.school_id == school_id)
    if search:
        stmt = stmt.where(
            or_(
                crud.contains(User.first_name, search),
                crud.contains(User.last_name, search),
                crud.contains(User.external_id, search),
            )
        )
    stmt = stmt.order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
    return await crud.fetch_all(db, crud.paginate(stmt, limit, offset))
