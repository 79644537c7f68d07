from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import CREATE, DELETE, UPDATE, deleted_or_404, or_404
from ..schemas import AttachmentCreate, AttachmentListInput, AttachmentRead, AttachmentUpdate, IdInput, Success
from ..services import lectures as svc
from ..services.audit import log_audit
from ..utils import require_authenticated_user, require_teacher

router = APIRouter()


@router.post("/list", response_model=list[AttachmentRead])
async def list_attachments(
    payload: AttachmentListInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_attachments_for_lecture(db, payload.lecture_id)


@router.post("/create", response_model=Success)
async def create_attachment(
    payload: AttachmentCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    attachment = await svc.create_attachment(db, payload.model_dump())
    await log_audit(
        db, actor_user_id=user.id, action=CREATE, entity_type="attachment", entity_id=attachment.id,
        meta={"lectureId": attachment.lecture_id},
    )
    await db.commit()
    return Success(id=attachment.id)


@router.post("/update", response_model=Success)
async def update_attachment(
    payload: AttachmentUpdate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    or_404(await svc.update_attachment(db, payload.id, changes), "Attachment")
    await log_audit(
        db, actor_user_id=user.id, action=UPDATE, entity_type="attachment", entity_id=payload.id,
        meta={"fields": sorted(changes)},
    )
    await db.commit()
    return Success(id=payload.id)


@router.post("/delete", response_model=Success)
async def delete_attachment(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    deleted_or_404(await svc.delete_attachment(db, payload.id), "Attachment")
    await log_audit(db, actor_user_id=user.id, action=DELETE, entity_type="attachment", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)
