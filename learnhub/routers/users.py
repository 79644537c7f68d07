from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..routes_shared import or_404
from ..schemas import UpdateProfileInput, UserRead
from ..services.users import update_user
from ..utils import require_authenticated_user

router = APIRouter()


@router.post("/updateProfile", response_model=UserRead)
async def update_profile(
    payload: UpdateProfileInput,
    user: User = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    updated = or_404(await update_user(db, user.id, payload.model_dump(exclude_unset=True)), "User")
    await db.commit()
    return updated
