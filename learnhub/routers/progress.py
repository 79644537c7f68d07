from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas import CourseIdInput, ProgressGetInput, ProgressRead, ProgressUpdateInput, Success
from ..services import analytics
from ..services import progress as svc
from ..utils import require_student

router = APIRouter()


@router.post("/update", response_model=Success)
async def update_progress(
    payload: ProgressUpdateInput,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    # the client decides completion; the flag is stored as sent
    row = await svc.upsert_progress(
        db,
        user_id=user.id,
        lecture_id=payload.lecture_id,
        position_sec=payload.position_sec,
        completed=payload.completed,
        watched_language=payload.watched_language,
    )
    if payload.completed:
        await analytics.log_event(
            db,
            event_type=analytics.LECTURE_COMPLETED,
            user_id=user.id,
            props={"lectureId": payload.lecture_id, "positionSec": payload.position_sec},
        )
    await db.commit()
    return Success(id=row.id)


@router.post("/get", response_model=Optional[ProgressRead])
async def get_progress(
    payload: ProgressGetInput,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    return await svc.get_progress(db, user.id, payload.lecture_id)


@router.get("/myProgress", response_model=list[ProgressRead])
async def my_progress(
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_progress_for_user(db, user.id)


@router.post("/getByCourse", response_model=Optional[ProgressRead])
async def get_by_course(
    payload: CourseIdInput,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    return await svc.latest_progress_for_course(db, user.id, payload.course_id)
