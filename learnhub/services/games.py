# services/games.py
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import GameSession, InteractiveGame, UnitGame
from . import crud


async def create_game(db: AsyncSession, data: Mapping[str, Any]) -> InteractiveGame:
    return await crud.create(db, InteractiveGame, data)


async def list_games(db: AsyncSession) -> Sequence[InteractiveGame]:
    stmt = select(InteractiveGame).order_by(desc(InteractiveGame.created_at), desc(InteractiveGame.id))
    return await crud.fetch_all(db, stmt)


async def get_game(db: AsyncSession, game_id: int) -> Optional[InteractiveGame]:
    return await crud.get_by_id(db, InteractiveGame, game_id)


async def link_game_to_unit(db: AsyncSession, data: Mapping[str, Any]) -> UnitGame:
    return await crud.create(db, UnitGame, data)


async def list_games_for_unit(db: AsyncSession, unit_id: int) -> list[tuple[UnitGame, Optional[InteractiveGame]]]:
    """Link rows in display order, each paired with its game (None if the game is gone)."""
    stmt = (
        select(UnitGame, InteractiveGame)
        .outerjoin(InteractiveGame, InteractiveGame.id == UnitGame.game_id)
        .where(UnitGame.unit_id == unit_id)
        .order_by(UnitGame.order.asc(), UnitGame.id.asc())
    )
    return [(link, game) for link, game in (await db.execute(stmt)).all()]


# ---------------------------
# Game sessions
# ---------------------------
async def create_game_session(db: AsyncSession, data: Mapping[str, Any]) -> GameSession:
    return await crud.create(db, GameSession, data)


async def update_game_session(db: AsyncSession, session_id: int, changes: Mapping[str, Any]) -> Optional[GameSession]:
    changes = dict(changes)
    if changes.get("completed"):
        changes.setdefault("completed_at", datetime.now(timezone.utc))
    return await crud.update(db, GameSession, session_id, changes)


async def list_game_sessions_for_user(db: AsyncSession, user_id: int) -> Sequence[GameSession]:
    stmt = (
        select(GameSession)
        .where(GameSession.user_id == user_id)
        .order_by(desc(GameSession.created_at), desc(GameSession.id))
    )
    return await crud.fetch_all(db, stmt)
