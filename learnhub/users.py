import logging
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi_users import FastAPIUsers
from fastapi_users.manager import BaseUserManager, IntegerIDMixin
from fastapi_users.authentication import CookieTransport, AuthenticationBackend, JWTStrategy
from fastapi_users.db import SQLAlchemyUserDatabase
from fastapi_users.password import PasswordHelper
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .models import User
from .services.users import record_sign_in, upsert_user
from .settings.config import settings


logger = logging.getLogger(__name__)


SECRET = (settings.SECRET or "").strip()
if not SECRET or SECRET == "CHANGE_ME_SECRET":
    raise RuntimeError(
        "SECRET environment variable must be set to a strong value; the default placeholder is not allowed."
    )

password_helper = PasswordHelper()

# -------------------------
# Database Dependency
# -------------------------
async def get_user_db(session: AsyncSession = Depends(get_db)):
    yield SQLAlchemyUserDatabase(session, User)

# -------------------------
# User Manager
# -------------------------
class UserManager(IntegerIDMixin, BaseUserManager[User, int]):
    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def on_after_login(
        self, user: User, request: Optional[Request] = None, response: Optional[Response] = None
    ):
        session = self.user_db.session
        await record_sign_in(session, user)
        await session.commit()
        logger.info("User %s signed in", user.id)


async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db, password_helper)

# -------------------------
# Authentication Backend
# -------------------------
cookie_transport = CookieTransport(
    cookie_name=settings.SESSION_COOKIE_NAME,
    cookie_max_age=settings.SESSION_LIFETIME_SECONDS,
    cookie_secure=settings.COOKIE_SECURE,
    cookie_httponly=True,
)

def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(secret=SECRET, lifetime_seconds=settings.SESSION_LIFETIME_SECONDS)

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)

# -------------------------
# FastAPI Users instance
# -------------------------
fastapi_users = FastAPIUsers[User, int](
    get_user_manager,
    [auth_backend],
)

current_active_user = fastapi_users.current_user(active=True)
current_optional_user = fastapi_users.current_user(optional=True, active=True)


async def issue_session_token(user: User) -> str:
    """JWT for `user`, as set in the session cookie after login."""
    return await get_jwt_strategy().write_token(user)


# -------------------------
# Owner bootstrap
# -------------------------
async def ensure_owner_user(session: AsyncSession) -> Optional[User]:
    if not settings.OWNER_OPEN_ID:
        logger.info("OWNER_OPEN_ID not set; skipping owner bootstrap")
        return None
    password = settings.OWNER_PASSWORD or password_helper.generate()
    owner = await upsert_user(
        session,
        open_id=settings.OWNER_OPEN_ID,
        external_id=settings.OWNER_OPEN_ID,
        hashed_password=password_helper.hash(password),
        first_name=settings.OWNER_FIRST_NAME,
        last_name=settings.OWNER_LAST_NAME,
        email=settings.OWNER_EMAIL,
    )
    await session.commit()
    logger.info("Owner user %s ensured as %s", owner.id, owner.role.value)
    return owner
