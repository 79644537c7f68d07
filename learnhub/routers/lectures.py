import time

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import CREATE, DELETE, UPDATE, deleted_or_404, or_404
from ..schemas import (
    AttachmentRead,
    IdInput,
    LectureCreate,
    LectureDetail,
    LectureRead,
    LectureUpdate,
    Success,
    UploadUrlInput,
    UploadUrlRead,
)
from ..services import lectures as svc
from ..services.audit import log_audit
from ..settings.config import settings
from ..utils import require_authenticated_user, require_teacher

router = APIRouter()


def upload_key(user_id: int, file_name: str, ts_ms: int) -> str:
    # keys are path-like; a slash in the client's file name must not add a level
    safe_name = file_name.replace("/", "_").replace("\\", "_")
    return f"videos/{user_id}/{ts_ms}-{safe_name}"


@router.post("/get", response_model=LectureDetail)
async def get_lecture(
    payload: IdInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    lecture = or_404(await svc.get_lecture(db, payload.id), "Lecture")
    attachments = await svc.list_attachments_for_lecture(db, lecture.id)
    return LectureDetail(
        lecture=LectureRead.model_validate(lecture),
        attachments=[AttachmentRead.model_validate(a) for a in attachments],
    )


@router.post("/create", response_model=Success)
async def create_lecture(
    payload: LectureCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    lecture = await svc.create_lecture(db, payload.model_dump())
    await log_audit(
        db, actor_user_id=user.id, action=CREATE, entity_type="lecture", entity_id=lecture.id,
        meta={"unitId": lecture.unit_id},
    )
    await db.commit()
    return Success(id=lecture.id)


@router.post("/update", response_model=Success)
async def update_lecture(
    payload: LectureUpdate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    or_404(await svc.update_lecture(db, payload.id, changes), "Lecture")
    await log_audit(
        db, actor_user_id=user.id, action=UPDATE, entity_type="lecture", entity_id=payload.id,
        meta={"fields": sorted(changes)},
    )
    await db.commit()
    return Success(id=payload.id)


@router.post("/delete", response_model=Success)
async def delete_lecture(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    deleted_or_404(await svc.delete_lecture(db, payload.id), "Lecture")
    await log_audit(db, actor_user_id=user.id, action=DELETE, entity_type="lecture", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)


@router.post("/getUploadUrl", response_model=UploadUrlRead)
async def get_upload_url(
    payload: UploadUrlInput,
    user: User = Depends(require_teacher),
):
    key = upload_key(user.id, payload.file_name, int(time.time() * 1000))
    url = f"{settings.UPLOAD_BASE_URL.rstrip('/')}/{key}"
    # the object store is outside this service: upload and public URL coincide
    return UploadUrlRead(file_key=key, upload_url=url, video_url=url)
