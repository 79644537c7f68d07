from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import CREATE, DELETE, UPDATE, deleted_or_404, or_404
from ..schemas import (
    GameRead,
    IdInput,
    LectureRead,
    Success,
    UnitCreate,
    UnitDetail,
    UnitGameEntry,
    UnitGameRead,
    UnitListInput,
    UnitRead,
    UnitUpdate,
)
from ..services import units as svc
from ..services.audit import log_audit
from ..services.games import list_games_for_unit
from ..services.lectures import list_lectures_for_unit
from ..utils import require_authenticated_user, require_teacher

router = APIRouter()


@router.post("/list", response_model=list[UnitRead])
async def list_units(
    payload: UnitListInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_units_for_course(db, payload.course_id)


@router.post("/get", response_model=UnitDetail)
async def get_unit(
    payload: IdInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    unit = or_404(await svc.get_unit(db, payload.id), "Unit")
    lectures = await list_lectures_for_unit(db, unit.id)
    games = await list_games_for_unit(db, unit.id)
    return UnitDetail(
        unit=UnitRead.model_validate(unit),
        lectures=[LectureRead.model_validate(lecture) for lecture in lectures],
        games=[
            UnitGameEntry(
                unit_game=UnitGameRead.model_validate(link),
                game=GameRead.model_validate(game) if game is not None else None,
            )
            for link, game in games
        ],
    )


@router.post("/create", response_model=Success)
async def create_unit(
    payload: UnitCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    unit = await svc.create_unit(db, payload.model_dump())
    await log_audit(
        db, actor_user_id=user.id, action=CREATE, entity_type="unit", entity_id=unit.id,
        meta={"courseId": unit.course_id},
    )
    await db.commit()
    return Success(id=unit.id)


@router.post("/update", response_model=Success)
async def update_unit(
    payload: UnitUpdate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude={"id"})
    or_404(await svc.update_unit(db, payload.id, changes), "Unit")
    await log_audit(
        db, actor_user_id=user.id, action=UPDATE, entity_type="unit", entity_id=payload.id,
        meta={"fields": sorted(changes)},
    )
    await db.commit()
    return Success(id=payload.id)


@router.post("/delete", response_model=Success)
async def delete_unit(
    payload: IdInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    deleted_or_404(await svc.delete_unit(db, payload.id), "Unit")
    await log_audit(db, actor_user_id=user.id, action=DELETE, entity_type="unit", entity_id=payload.id)
    await db.commit()
    return Success(id=payload.id)
