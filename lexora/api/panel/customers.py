"""Panel customer registration API endpoints."""

from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import require_salesman
from lexora.config import settings
from lexora.db import get_db
from lexora.models import AuditAction, Customer, User
from lexora.schemas.customer import (
    CommissionCreditResponse,
    CustomerCreate,
    CustomerRegistrationResponse,
    CustomerResponse,
)
from lexora.services.commission import CustomerRegistrationError, create_customer
from lexora.services.hierarchy import BrokenReferralChainError, ReferralCycleError
from lexora.services.sms import send_token_sms
from lexora.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/customers")


@router.post(
    "",
    response_model=CustomerRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_customer(
    request: Request,
    data: CustomerCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_salesman),
):
    """
    Register a token sale and distribute commissions up the referral chain.

    The customer SMS is sent after the response, once the sale is committed.
    """
    duplicate = await db.scalar(
        select(Customer.id).where(Customer.token_serial == data.token_serial)
    )
    if duplicate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Token {data.token_serial} is already registered",
        )

    result = await db.execute(select(User))
    all_users = result.scalars().all()
    strict = settings.strict_referral_chain

    try:
        customer = await create_customer(db, data, current_user, all_users, strict=strict)
    except (BrokenReferralChainError, ReferralCycleError) as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except CustomerRegistrationError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.REGISTER_CUSTOMER,
        target=customer,
        action_metadata={"token_serial": customer.token_serial},
        ip_address=get_client_ip(request),
    )

    background_tasks.add_task(
        send_token_sms,
        customer_name=customer.name,
        customer_contact=customer.contact_info,
        token_serial=customer.token_serial,
        salesman_name=current_user.name,
        sale_date=customer.sale_date,
        down_payment=customer.down_payment,
    )

    return CustomerRegistrationResponse(
        customer=CustomerResponse.model_validate(customer),
        credits=[
            CommissionCreditResponse(
                user_id=r.user_id, role=r.granted_for_role, amount=r.amount
            )
            for r in customer.income_records
        ],
        total_commission=sum((r.amount for r in customer.income_records), Decimal("0")),
    )


@router.get("")
async def list_my_customers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_salesman),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """Customers registered by the current salesman, newest first."""
    query = select(Customer).where(Customer.salesman_id == current_user.id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(Customer.sale_date.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    customers = result.scalars().all()

    return {
        "items": [CustomerResponse.model_validate(c) for c in customers],
        "total": total or 0,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }
