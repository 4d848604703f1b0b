"""Customer registration schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from lexora.models.customer import PaymentMethod


class CustomerCreate(BaseModel):
    """Fields a salesman enters when registering a token sale."""

    name: str = Field(..., min_length=1, max_length=200)
    contact_info: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1)
    token_serial: str = Field(..., min_length=1, max_length=50)

    nic: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    payment_method: PaymentMethod = PaymentMethod.CASH
    down_payment: Optional[Decimal] = Field(None, ge=0)

    @field_validator("name", "contact_info", "address", "token_serial", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Whitespace-only values count as empty."""
        if isinstance(v, str):
            return v.strip()
        return v


class CustomerResponse(BaseModel):
    """Registered customer."""

    id: str
    name: str
    contact_info: str
    address: str
    token_serial: str
    salesman_id: str
    sale_date: datetime
    commission_distributed: bool
    payment_method: PaymentMethod
    down_payment: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class CommissionCreditResponse(BaseModel):
    """One credit produced by a registration."""

    user_id: str
    role: str
    amount: Decimal


class CustomerRegistrationResponse(BaseModel):
    """Result of registering a customer."""

    customer: CustomerResponse
    credits: list[CommissionCreditResponse]
    total_commission: Decimal
