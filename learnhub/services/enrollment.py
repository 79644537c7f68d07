# services/enrollment.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Course, Enrollment, EnrollmentStatus, User
from . import crud


async def enroll_student(
    db: AsyncSession, user_id: int, course_id: int, status: EnrollmentStatus = EnrollmentStatus.ACTIVE
) -> Enrollment:
    """Insert the (user, course) pair. A second enrollment raises IntegrityError."""
    return await crud.create(db, Enrollment, {"user_id": user_id, "course_id": course_id, "status": status})


async def get_enrollment(db: AsyncSession, enrollment_id: int) -> Optional[Enrollment]:
    return await crud.get_by_id(db, Enrollment, enrollment_id)


async def list_enrollments_for_user(db: AsyncSession, user_id: int) -> list[tuple[Enrollment, Optional[Course]]]:
    stmt = (
        select(Enrollment, Course)
        .outerjoin(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.user_id == user_id)
        .order_by(desc(Enrollment.created_at), desc(Enrollment.id))
    )
    return [(enrollment, course) for enrollment, course in (await db.execute(stmt)).all()]


async def list_enrollments_for_course(db: AsyncSession, course_id: int) -> list[tuple[Enrollment, Optional[User]]]:
    stmt = (
        select(Enrollment, User)
        .outerjoin(User, User.id == Enrollment.user_id)
        .where(Enrollment.course_id == course_id)
        .order_by(desc(Enrollment.created_at), desc(Enrollment.id))
    )
    return [(enrollment, user) for enrollment, user in (await db.execute(stmt)).all()]


async def set_enrollment_status(db: AsyncSession, enrollment_id: int, status: EnrollmentStatus) -> Optional[Enrollment]:
    # any status can follow any other; completed_at tracks the latest COMPLETED
    changes: dict = {"status": status}
    if status == EnrollmentStatus.COMPLETED:
        changes["completed_at"] = datetime.now(timezone.utc)
    return await crud.update(db, Enrollment, enrollment_id, changes)
