from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas import AnalyticsEventRead, CourseAnalyticsRead, CourseIdInput, EventsInput, OverviewInput, OverviewRead
from ..services import analytics as svc
from ..utils import require_teacher

router = APIRouter()


@router.post("/overview", response_model=OverviewRead)
async def overview(
    payload: Optional[OverviewInput] = None,
    user: User = Depends(require_teacher),
):
    # the range is accepted but nothing is aggregated yet
    return OverviewRead(**svc.overview())


@router.post("/course", response_model=CourseAnalyticsRead)
async def course(
    payload: CourseIdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    return CourseAnalyticsRead(**await svc.course_summary(db, payload.course_id))


@router.post("/events", response_model=list[AnalyticsEventRead])
async def events(
    payload: Optional[EventsInput] = None,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or EventsInput()
    return await svc.list_events(db, user_id=payload.user_id, event_type=payload.event_type, limit=payload.limit)
