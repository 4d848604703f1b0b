"""OpenAI integration for actionable insights on team performance."""

import json
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from openai import AsyncOpenAI

from lexora.config import settings
from lexora.models import Customer, User, UserRole
from lexora.schemas.insights import InsightContext
from lexora.services.commission import commission_for_role
from lexora.services.hierarchy import UserCollection, get_downline_ids_and_users

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None


def _get_client() -> Optional[AsyncOpenAI]:
    """Lazy-init OpenAI client. Returns None if no API key."""
    global _client
    if _client is not None:
        return _client
    if not settings.openai_api_key:
        return None
    _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


INSIGHTS_SYSTEM_PROMPT = """\
You are an AI assistant providing actionable insights to users of a sales \
commission platform based on their hierarchical position, commissions due, \
and recent team sales activities.

Suggest actions the user should take to improve team performance, address \
overdue commission payouts, or capitalize on recent successes. \
Keep each insight to one or two sentences.

Answer strictly in JSON (no markdown, no ```):
{"insights": ["first insight", "second insight"]}\
"""


def build_insight_context(
    user: User,
    all_users: UserCollection,
    customers: Iterable[Customer],
) -> InsightContext:
    """Summarize the caller's downline into prompt inputs."""
    downline = get_downline_ids_and_users(user.id, all_users)
    team_income = sum((u.total_income or Decimal("0") for u in downline.users), Decimal("0"))
    pending = sum(1 for c in customers if not c.commission_distributed)
    commissions_due = pending * commission_for_role(UserRole.TEAM_OPERATION_MANAGER)

    activities = (
        f"Team of {len(downline.users)} members generated LKR {team_income}. "
        f"{pending} commissions are pending payout."
    )
    return InsightContext(
        hierarchical_position=user.role.value,
        commissions_due=commissions_due,
        recent_team_sales_activities=activities,
    )


def _build_messages(context: InsightContext) -> list:
    details = (
        f"Hierarchical Position: {context.hierarchical_position}\n"
        f"Commissions Due: LKR {context.commissions_due}\n"
        f"Recent Team Sales Activities: {context.recent_team_sales_activities}"
    )
    return [
        {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
        {"role": "user", "content": details},
    ]


def _parse_insights(text: str) -> Optional[List[str]]:
    """Parse JSON response from LLM, handling markdown fences."""
    text = text.strip()
    # Strip markdown code fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        text = "\n".join(lines).strip()

    try:
        data = json.loads(text)
        insights = data.get("insights")
        if not isinstance(insights, list):
            logger.warning(f"LLM response has no insights list: {text[:100]}")
            return None
        return [str(item).strip() for item in insights if str(item).strip()]
    except (json.JSONDecodeError, AttributeError):
        logger.warning(f"Failed to parse LLM response as JSON: {text[:100]}")
        return None


async def generate_actionable_insights(context: InsightContext) -> Optional[List[str]]:
    """
    Generate suggestions for a user from their team aggregates.

    Returns:
        List of insight strings, or None if the LLM is unavailable or
        its answer could not be parsed
    """
    client = _get_client()
    if not client:
        return None

    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=_build_messages(context),
            temperature=0.4,
            max_tokens=400,
        )
        text = response.choices[0].message.content or ""
    except Exception as e:
        logger.error(f"OpenAI API error (insights): {e}")
        return None

    insights = _parse_insights(text)
    if insights is not None:
        logger.info(f"Generated {len(insights)} insights for {context.hierarchical_position}")
    return insights
