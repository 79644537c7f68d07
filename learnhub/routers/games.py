from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import CREATE, LINK_GAME
from ..schemas import GameCreate, GameRead, LinkGameInput, Success
from ..services import games as svc
from ..services.audit import log_audit
from ..utils import require_teacher

router = APIRouter()


@router.get("/list", response_model=list[GameRead])
async def list_games(
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_games(db)


@router.post("/create", response_model=Success)
async def create_game(
    payload: GameCreate,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    game = await svc.create_game(db, payload.model_dump())
    await log_audit(db, actor_user_id=user.id, action=CREATE, entity_type="game", entity_id=game.id)
    await db.commit()
    return Success(id=game.id)


@router.post("/linkToUnit", response_model=Success)
async def link_to_unit(
    payload: LinkGameInput,
    user: User = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
):
    link = await svc.link_game_to_unit(db, payload.model_dump())
    await log_audit(
        db, actor_user_id=user.id, action=LINK_GAME, entity_type="unit_game", entity_id=link.id,
        meta={"unitId": payload.unit_id, "gameId": payload.game_id},
    )
    await db.commit()
    return Success(id=link.id)
