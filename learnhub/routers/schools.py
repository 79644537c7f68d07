from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import CREATE, DELETE, UPDATE, deleted_or_404, or_404
from ..schemas import IdInput, SchoolCreate, SchoolRead, SchoolUpdate, Success
from ..services import schools as svc
from ..services.audit import log_audit
from ..utils import require_teacher

router = APIRouter()


@router.get("/list", response_model=list[SchoolRead])
async def list_schools(
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_schools(db)


@router.post("/get", response_model=SchoolRead)
async def get_school(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    return or_404(await svc.get_school(db, payload.id), "School")


@router.post("/create", response_model=Success)
async def create_school(
    payload: SchoolCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    school = await svc.create_school(db, payload.model_dump())
    await log_audit(db, actor_user_id=user.id, action=CREATE, entity_type="school", entity_id=school.id)
    await db.commit()
    return Success(id=school.id)


@router.post("/update", response_model=Success)
async def update_school(
    payload: SchoolUpdate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    or_404(await svc.update_school(db, payload.id, changes), "School")
    await log_audit(
        db, actor_user_id=user.id, action=UPDATE, entity_type="school", entity_id=payload.id,
        meta={"fields": sorted(changes)},
    )
    await db.commit()
    return Success(id=payload.id)


@router.post("/delete", response_model=Success)
async def delete_school(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    deleted_or_404(await svc.delete_school(db, payload.id), "School")
    await log_audit(db, actor_user_id=user.id, action=DELETE, entity_type="school", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)
