"""Panel team and income API endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import get_current_user
from lexora.db import get_db
from lexora.models import IncomeRecord, User
from lexora.schemas.user import DownlineMember, DownlineResponse, IncomeRecordResponse
from lexora.services.commission import income_total
from lexora.services.hierarchy import get_downline_ids_and_users

router = APIRouter(prefix="/team")


@router.get("/downline", response_model=DownlineResponse)
async def get_downline(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """
    Everyone the current user transitively referred, breadth-first.

    Personal and team income are summed from income records within the
    optional date range.
    """
    result = await db.execute(select(User))
    all_users = result.scalars().all()

    downline = get_downline_ids_and_users(current_user.id, all_users)

    personal_income = await income_total(db, [current_user.id], start_date, end_date)
    team_income = await income_total(db, downline.ids, start_date, end_date)

    return DownlineResponse(
        user_id=current_user.id,
        team_size=len(downline.ids),
        personal_income=personal_income,
        team_income=team_income,
        members=[DownlineMember.model_validate(u) for u in downline.users],
    )


@router.get("/income")
async def get_income_records(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """Commission credits of the current user, newest first."""
    query = select(IncomeRecord).where(IncomeRecord.user_id == current_user.id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(IncomeRecord.sale_date.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    records = result.scalars().all()

    return {
        "items": [IncomeRecordResponse.model_validate(r) for r in records],
        "total": total or 0,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }
