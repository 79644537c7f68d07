from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..i18n import localize_course, localize_lecture, localize_unit
from ..models import Course, Role, User, Visibility
from ..routes_shared import CREATE, DELETE, PUBLISH, UPDATE, deleted_or_404, or_404
from ..schemas import (
    CourseCreate,
    CourseDetail,
    CourseGetInput,
    CourseListInput,
    CoursePreview,
    CourseRead,
    CourseUpdate,
    IdInput,
    Success,
    UnitWithLectures,
)
from ..services import courses as svc
from ..services.audit import log_audit
from ..services.units import list_units_for_course
from ..utils import require_authenticated_user, require_teacher

router = APIRouter()


def _camel_keys(values: dict[str, Any]) -> dict[str, Any]:
    return {to_camel(k): v for k, v in values.items()}


def _localized_tree(course: Course, language) -> dict[str, Any]:
    return {
        "course": _camel_keys(localize_course(course, language)),
        "units": [
            {
                "id": unit.id,
                **_camel_keys(localize_unit(unit, language)),
                "lectures": [
                    {"id": lecture.id, **_camel_keys(localize_lecture(lecture, language))}
                    for lecture in unit.lectures
                ],
            }
            for unit in course.units
        ],
    }


@router.post("/list", response_model=list[CourseRead])
async def list_courses(
    payload: Optional[CourseListInput] = None,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or CourseListInput()
    visibility = payload.visibility
    if user.role == Role.STUDENT:
        # students only ever see the public catalog
        visibility = Visibility.PUBLIC
    return await svc.list_courses(
        db,
        visibility=visibility,
        created_by=payload.created_by,
        search=payload.search,
        limit=payload.limit,
        offset=payload.offset,
    )


@router.post("/get", response_model=CourseDetail)
async def get_course(
    payload: CourseGetInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    course = or_404(await svc.get_course_with_content(db, payload.id), "Course")
    language = payload.language or user.preferred_language
    return CourseDetail(
        course=CourseRead.model_validate(course),
        units=[UnitWithLectures.model_validate(unit) for unit in course.units],
        language=language,
        localized=_localized_tree(course, language),
    )


@router.post("/preview", response_model=CoursePreview)
async def preview_course(
    payload: IdInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    course = or_404(await svc.get_course(db, payload.id), "Course")
    units = await list_units_for_course(db, course.id)
    return CoursePreview(
        description=course.description,
        description_ar=course.description_ar,
        description_he=course.description_he,
        estimated_duration=course.estimated_duration,
        unit_count=len(units),
        learning_outcomes=course.learning_outcomes,
    )


@router.post("/create", response_model=Success)
async def create_course(
    payload: CourseCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    course = await svc.create_course(db, {**payload.model_dump(), "created_by": user.id})
    await log_audit(db, actor_user_id=user.id, action=CREATE, entity_type="course", entity_id=course.id)
    await db.commit()
    return Success(id=course.id)


@router.post("/update", response_model=Success)
async def update_course(
    payload: CourseUpdate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    or_404(await svc.update_course(db, payload.id, changes), "Course")
    await log_audit(
        db, actor_user_id=user.id, action=UPDATE, entity_type="course", entity_id=payload.id,
        meta={"fields": sorted(changes)},
    )
    await db.commit()
    return Success(id=payload.id)


@router.post("/delete", response_model=Success)
async def delete_course(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    # units and lectures stay behind, addressable by their parent id
    deleted_or_404(await svc.delete_course(db, payload.id), "Course")
    await log_audit(db, actor_user_id=user.id, action=DELETE, entity_type="course", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)


@router.post("/publish", response_model=Success)
async def publish_course(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    or_404(await svc.publish_course(db, payload.id), "Course")
    await log_audit(db, actor_user_id=user.id, action=PUBLISH, entity_type="course", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)
