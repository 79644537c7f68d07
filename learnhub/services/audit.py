# services/audit.py
import logging
from typing import Any, Optional, Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AuditLog
from . import crud

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    *,
    actor_user_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta=meta,
    )
    db.add(entry)
    await db.flush()
    logger.debug("audit %s %s#%s by user %s", action, entity_type, entity_id, actor_user_id)
    return entry


async def list_audit_logs(
    db: AsyncSession,
    *,
    actor_user_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Sequence[AuditLog]:
    stmt = select(AuditLog)
    if actor_user_id:
        stmt = stmt.where(AuditLog.actor_user_id == actor_user_id)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    stmt = stmt.order_by(desc(AuditLog.created_at), desc(AuditLog.id))
    return await crud.fetch_all(db, crud.paginate(stmt, limit, offset))
