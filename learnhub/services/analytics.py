# services/analytics.py
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AnalyticsEvent, Enrollment, EnrollmentStatus
from . import crud

# Event types written by the RPC layer
COURSE_ENROLLED = "course_enrolled"
LECTURE_COMPLETED = "lecture_completed"
GAME_STARTED = "game_started"
GAME_COMPLETED = "game_completed"


async def log_event(
    db: AsyncSession,
    *,
    event_type: str,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    props: Optional[dict[str, Any]] = None,
) -> AnalyticsEvent:
    event = AnalyticsEvent(user_id=user_id, session_id=session_id, event_type=event_type, props=props)
    db.add(event)
    await db.flush()
    return event


async def list_events(
    db: AsyncSession,
    *,
    user_id: Optional[int] = None,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> Sequence[AnalyticsEvent]:
    stmt = select(AnalyticsEvent)
    if user_id:
        stmt = stmt.where(AnalyticsEvent.user_id == user_id)
    if event_type:
        stmt = stmt.where(AnalyticsEvent.event_type == event_type)
    if start:
        stmt = stmt.where(AnalyticsEvent.timestamp >= start)
    if end:
        stmt = stmt.where(AnalyticsEvent.timestamp < end)
    stmt = stmt.order_by(desc(AnalyticsEvent.timestamp), desc(AnalyticsEvent.id))
    return await crud.fetch_all(db, crud.paginate(stmt, limit))


async def course_summary(db: AsyncSession, course_id: int) -> dict[str, float]:
    enrollments = await db.scalar(
        select(func.count()).select_from(Enrollment).where(Enrollment.course_id == course_id)
    ) or 0
    completions = await db.scalar(
        select(func.count())
        .select_from(Enrollment)
        .where(Enrollment.course_id == course_id, Enrollment.status == EnrollmentStatus.COMPLETED)
    ) or 0
    return {
        "enrollments": enrollments,
        "completions": completions,
        "completion_rate": (completions / enrollments) * 100 if enrollments else 0,
    }


def overview() -> dict[str, float]:
    # No aggregation is defined for the overview yet; every counter stays zero
    # until one is designed.
    return {
        "course_count": 0,
        "student_count": 0,
        "school_count": 0,
        "dau": 0,
        "mau": 0,
        "average_watch_time": 0,
        "completion_rate": 0,
        "game_play_rate": 0,
    }
