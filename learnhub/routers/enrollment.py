from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import SET_STATUS, or_404
from ..schemas import (
    CourseIdInput,
    CourseRead,
    EnrollInput,
    EnrollmentRead,
    EnrollmentWithCourse,
    EnrollmentWithUser,
    SetEnrollmentStatusInput,
    Success,
    UserRead,
)
from ..services import analytics
from ..services import enrollment as svc
from ..services.audit import log_audit
from ..utils import require_student, require_teacher

router = APIRouter()


@router.post("/enroll", response_model=Success)
async def enroll(
    payload: EnrollInput,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    # a repeat enrollment raises IntegrityError, answered with 409
    row = await svc.enroll_student(db, user.id, payload.course_id)
    await analytics.log_event(
        db, event_type=analytics.COURSE_ENROLLED, user_id=user.id, props={"courseId": payload.course_id}
    )
    await db.commit()
    return Success(id=row.id)


@router.get("/myEnrollments", response_model=list[EnrollmentWithCourse])
async def my_enrollments(
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_enrollments_for_user(db, user.id)
    return [
        EnrollmentWithCourse(
            enrollment=EnrollmentRead.model_validate(enrollment),
            course=CourseRead.model_validate(course) if course is not None else None,
        )
        for enrollment, course in rows
    ]


@router.post("/listForCourse", response_model=list[EnrollmentWithUser])
async def list_for_course(
    payload: CourseIdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.list_enrollments_for_course(db, payload.course_id)
    return [
        EnrollmentWithUser(
            enrollment=EnrollmentRead.model_validate(enrollment),
            user=UserRead.model_validate(student) if student is not None else None,
        )
        for enrollment, student in rows
    ]


@router.post("/setStatus", response_model=Success)
async def set_status(
    payload: SetEnrollmentStatusInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    or_404(await svc.set_enrollment_status(db, payload.id, payload.status), "Enrollment")
    await log_audit(
        db, actor_user_id=user.id, action=SET_STATUS, entity_type="enrollment", entity_id=payload.id,
        meta={"status": payload.status.value},
    )
    await db.commit()
    return Success(id=payload.id)
