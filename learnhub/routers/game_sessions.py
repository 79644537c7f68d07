from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import GameSession, Role, User
from ..routes_shared import or_404
from ..schemas import GameSessionCreate, GameSessionUpdate, Success
from ..services import analytics, crud
from ..services import games as svc
from ..utils import require_student

router = APIRouter()


@router.post("/create", response_model=Success)
async def create_session(
    payload: GameSessionCreate,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    session = await svc.create_game_session(db, {**payload.model_dump(), "user_id": user.id})
    await analytics.log_event(
        db,
        event_type=analytics.GAME_STARTED,
        user_id=user.id,
        props={"gameId": payload.game_id, "unitId": payload.unit_id, "sessionId": session.id},
    )
    await db.commit()
    return Success(id=session.id)


@router.post("/update", response_model=Success)
async def update_session(
    payload: GameSessionUpdate,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    session = or_404(await crud.get_by_id(db, GameSession, payload.session_id), "Game session")
    if session.user_id != user.id and user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your game session")
    changes = payload.model_dump(exclude_unset=True, exclude={"session_id"})
    await svc.update_game_session(db, session.id, changes)
    if payload.completed:
        await analytics.log_event(
            db,
            event_type=analytics.GAME_COMPLETED,
            user_id=user.id,
            props={"gameId": session.game_id, "sessionId": session.id, "score": payload.score},
        )
    await db.commit()
    return Success(id=session.id)
