from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas import AuditListInput, AuditLogRead
from ..services.audit import list_audit_logs
from ..utils import require_admin_user

router = APIRouter()


@router.post("/list", response_model=list[AuditLogRead])
async def list_logs(
    payload: Optional[AuditListInput] = None,
    user: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or AuditListInput()
    return await list_audit_logs(
        db,
        actor_user_id=payload.actor_user_id,
        entity_type=payload.entity_type,
        limit=payload.limit,
        offset=payload.offset,
    )
