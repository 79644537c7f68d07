from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Role, User
from ..routes_shared import or_404
from ..schemas import (
    CourseRead,
    EnrollmentRead,
    EnrollmentWithCourse,
    GameSessionRead,
    IdInput,
    ProgressRead,
    StudentDetail,
    StudentListInput,
    UserRead,
)
from ..services.enrollment import list_enrollments_for_user
from ..services.games import list_game_sessions_for_user
from ..services.progress import list_progress_for_user
from ..services.users import get_user_by_id, list_students
from ..utils import require_teacher

router = APIRouter()


@router.post("/list", response_model=list[UserRead])
async def list_all(
    payload: Optional[StudentListInput] = None,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or StudentListInput()
    return await list_students(
        db, school_id=payload.school_id, search=payload.search, limit=payload.limit, offset=payload.offset
    )


@router.post("/get", response_model=StudentDetail)
async def get_student(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    student = or_404(await get_user_by_id(db, payload.id), "Student")
    # teacher and admin accounts are not part of the roster
    if student.role != Role.STUDENT:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    enrollments = await list_enrollments_for_user(db, student.id)
    progress = await list_progress_for_user(db, student.id)
    sessions = await list_game_sessions_for_user(db, student.id)
    return StudentDetail(
        student=UserRead.model_validate(student),
        enrollments=[
            EnrollmentWithCourse(
                enrollment=EnrollmentRead.model_validate(enrollment),
                course=CourseRead.model_validate(course) if course is not None else None,
            )
            for enrollment, course in enrollments
        ],
        progress=[ProgressRead.model_validate(p) for p in progress],
        game_sessions=[GameSessionRead.model_validate(s) for s in sessions],
    )
