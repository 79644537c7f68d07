import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas import SignInInput, Success, UpdateLanguageInput, UserRead
from ..services.users import get_user_by_open_id, record_sign_in, update_user_language, upsert_user
from ..settings.config import settings
from ..users import cookie_transport, get_jwt_strategy, password_helper
from ..utils import get_current_user, require_authenticated_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=Optional[UserRead])
async def me(user: Optional[User] = Depends(get_current_user)):
    # anonymous callers get null rather than 401
    return user


@router.post("/signIn", response_model=UserRead)
async def sign_in(
    payload: SignInInput,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    existing = await get_user_by_open_id(db, payload.open_id)
    if existing is not None:
        verified, _ = password_helper.verify_and_update(payload.password, existing.hashed_password)
        if not verified or not existing.is_active:
            raise HTTPException(status_code=400, detail="LOGIN_BAD_CREDENTIALS")

    hashed = existing.hashed_password if existing is not None else password_helper.hash(payload.password)
    extra = {"email": payload.email} if "email" in payload.model_fields_set else {}
    user = await upsert_user(
        db,
        open_id=payload.open_id,
        external_id=payload.external_id,
        hashed_password=hashed,
        first_name=payload.first_name,
        last_name=payload.last_name,
        **extra,
    )
    await record_sign_in(db, user)
    await db.commit()
    logger.info("User %s signed in (%s)", user.id, "returning" if existing else "new")

    token = await get_jwt_strategy().write_token(user)
    response.set_cookie(
        key=cookie_transport.cookie_name,
        value=token,
        httponly=True,
        max_age=cookie_transport.cookie_max_age,
        secure=cookie_transport.cookie_secure,
        samesite=cookie_transport.cookie_samesite,
        path="/",
    )
    return user


@router.post("/logout", response_model=Success)
async def logout(response: Response):
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
    )
    return Success()


@router.post("/updateLanguage", response_model=Success)
async def update_language(
    payload: UpdateLanguageInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    await update_user_language(db, user.id, payload.language)
    await db.commit()
    return Success()
