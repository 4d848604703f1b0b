"""
Token-sale commission cascade.

Rules:
- Every registration credits a fixed amount per role
- The salesman and each referrer above them are credited once
- Roles with a zero amount are walked through but not credited
- Customer, income records and increments commit together or not at all
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, NamedTuple, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.models import Customer, IncomeRecord, User, UserRole, generate_id
from lexora.models.ledger import SOURCE_TOKEN_SALE
from lexora.schemas.customer import CustomerCreate
from lexora.services.hierarchy import UserCollection, index_users, iter_upline

logger = logging.getLogger(__name__)

# Fixed payout per token sale, by role of the credited user (LKR)
COMMISSION_AMOUNTS = {
    UserRole.SALESMAN: Decimal("600"),
    UserRole.TEAM_OPERATION_MANAGER: Decimal("400"),
    UserRole.GROUP_OPERATION_MANAGER: Decimal("250"),
    UserRole.HEAD_GROUP_MANAGER: Decimal("150"),
    UserRole.REGIONAL_DIRECTOR: Decimal("100"),
    UserRole.ADMIN: Decimal("0"),
}


class CustomerRegistrationError(Exception):
    """Raised when a customer registration could not be committed."""
    pass


class CommissionCredit(NamedTuple):
    user_id: str
    role: UserRole
    amount: Decimal


def commission_for_role(role: UserRole) -> Decimal:
    return COMMISSION_AMOUNTS.get(role, Decimal("0"))


def plan_commission_cascade(
    salesman: User,
    all_users: UserCollection,
    strict: bool = False,
) -> List[CommissionCredit]:
    """Work out who gets credited for one sale by ``salesman``.

    Args:
        salesman: User who made the sale
        all_users: Every known user, used to resolve referrers
        strict: Raise instead of truncating on a broken or cyclic chain

    Returns:
        Credits in chain order, salesman first, zero amounts omitted
    """
    users_by_id = index_users(all_users)
    credits = []
    for user in iter_upline(salesman, users_by_id, strict=strict):
        amount = commission_for_role(user.role)
        if amount > 0:
            credits.append(CommissionCredit(user.id, user.role, amount))
    return credits


async def create_customer(
    db: AsyncSession,
    customer_data: CustomerCreate,
    salesman: User,
    all_users: UserCollection,
    strict: bool = False,
    sale_date: Optional[datetime] = None,
) -> Customer:
    """
    Register a customer and distribute the token commission.

    Income is credited with ``total_income = total_income + amount`` so
    concurrent registrations sharing an ancestor never lose an update.
    The caller's User objects are not trusted for the current balance.

    Args:
        db: Database session; this function owns the commit
        customer_data: Validated customer fields
        salesman: User who made the sale
        all_users: Every known user, used to resolve referrers
        strict: Raise instead of truncating on a broken or cyclic chain
        sale_date: Override for the sale timestamp (defaults to now, UTC)

    Returns:
        The committed Customer; its income_records are the credits written,
        salesman first

    Raises:
        BrokenReferralChainError, ReferralCycleError: strict mode only,
            before anything is written
        CustomerRegistrationError: the transaction could not be committed
    """
    credits = plan_commission_cascade(salesman, all_users, strict=strict)
    sale_date = sale_date or datetime.now(timezone.utc)
    salesman_id = salesman.id
    customer_id = generate_id()

    customer = Customer(
        id=customer_id,
        salesman_id=salesman_id,
        sale_date=sale_date,
        commission_distributed=True,
        income_records=[],
        **customer_data.model_dump(),
    )

    try:
        db.add(customer)
        for credit in credits:
            await db.execute(
                update(User)
                .where(User.id == credit.user_id)
                .values(total_income=User.total_income + credit.amount)
                .execution_options(synchronize_session=False)
            )
            customer.income_records.append(
                IncomeRecord(
                    user_id=credit.user_id,
                    amount=credit.amount,
                    granted_for_role=credit.role.value,
                    source_type=SOURCE_TOKEN_SALE,
                    salesman_id=salesman_id,
                    customer_id=customer_id,
                    token_serial=customer_data.token_serial,
                    sale_date=sale_date,
                )
            )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Customer registration failed for token {customer_data.token_serial}: {e}")
        raise CustomerRegistrationError(
            f"Could not register token {customer_data.token_serial}"
        ) from e

    total = sum((c.amount for c in credits), Decimal("0"))
    logger.info(
        f"Registered customer {customer_id} (token {customer_data.token_serial}) "
        f"by {salesman_id}: {len(credits)} credits, {total} total"
    )
    return customer


async def income_total(
    db: AsyncSession,
    user_ids: Sequence[str],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Decimal:
    """Sum of the income records credited to ``user_ids``, by sale date."""
    if not user_ids:
        return Decimal("0")
    query = (
        select(func.coalesce(func.sum(IncomeRecord.amount), 0))
        .where(IncomeRecord.user_id.in_(user_ids))
    )
    if start_date:
        query = query.where(IncomeRecord.sale_date >= start_date)
    if end_date:
        query = query.where(IncomeRecord.sale_date <= end_date)
    total = await db.scalar(query)
    return Decimal(str(total)) if total else Decimal("0")
