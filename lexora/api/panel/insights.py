"""Panel actionable insights endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import get_current_user
from lexora.db import get_db
from lexora.models import Customer, User
from lexora.schemas.insights import InsightsResponse
from lexora.services.hierarchy import get_downline_ids_and_users
from lexora.services.insights import build_insight_context, generate_actionable_insights

router = APIRouter(prefix="/insights")


@router.post("", response_model=InsightsResponse)
async def get_actionable_insights(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """AI suggestions based on the current user's team numbers."""
    result = await db.execute(select(User))
    all_users = result.scalars().all()

    downline = get_downline_ids_and_users(current_user.id, all_users)
    team_ids = [current_user.id, *downline.ids]
    customers = (
        await db.execute(select(Customer).where(Customer.salesman_id.in_(team_ids)))
    ).scalars().all()

    context = build_insight_context(current_user, all_users, customers)
    insights = await generate_actionable_insights(context)
    if insights is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Insights are currently unavailable",
        )

    return InsightsResponse(insights=insights)
