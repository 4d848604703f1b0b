"""Admin user management API endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import require_admin
from lexora.db import get_db
from lexora.models import User, UserRole
from lexora.schemas.user import DownlineMember, DownlineResponse, UserResponse
from lexora.services.commission import income_total
from lexora.services.hierarchy import get_downline_ids_and_users

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """List users, highest income first."""
    query = select(User)

    if role:
        query = query.where(User.role == role)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(User.total_income.desc(), User.name)
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    users = result.scalars().all()

    return {
        "items": [UserResponse.model_validate(u) for u in users],
        "total": total or 0,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }


@router.get("/{user_id}/downline", response_model=DownlineResponse)
async def get_user_downline(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """Downline of any user, with income summed the same way as the panel report."""
    result = await db.execute(select(User))
    users_by_id = {u.id: u for u in result.scalars().all()}

    user = users_by_id.get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    downline = get_downline_ids_and_users(user_id, users_by_id)
    return DownlineResponse(
        user_id=user.id,
        team_size=len(downline.ids),
        personal_income=await income_total(db, [user.id], start_date, end_date),
        team_income=await income_total(db, downline.ids, start_date, end_date),
        members=[DownlineMember.model_validate(u) for u in downline.users],
    )
