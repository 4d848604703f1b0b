"""Actionable insight schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class InsightContext(BaseModel):
    """Aggregates fed to the insight prompt."""

    hierarchical_position: str
    commissions_due: Decimal = Field(..., ge=0)
    recent_team_sales_activities: str


class InsightsResponse(BaseModel):
    """Suggestions returned by the model."""

    insights: list[str]
