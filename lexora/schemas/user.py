"""User and team schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SignupRequest(BaseModel):
    """Create an account under an existing referrer."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    mobile_number: str = Field(..., min_length=10, max_length=11, pattern=r"^\d+$")
    password: str = Field(..., min_length=6, max_length=100)
    referral_code: str = Field(..., min_length=6, max_length=6)


class UserResponse(BaseModel):
    """User information."""

    id: str
    name: str
    email: str
    role: str
    referrer_id: Optional[str]
    referral_code: Optional[str] = None
    total_income: Decimal = Decimal("0.00")
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def role_value(cls, v):
        return v.value if isinstance(v, Enum) else v


class DownlineMember(BaseModel):
    """One member of a user's downline."""

    id: str
    name: str
    role: str
    referrer_id: Optional[str]
    total_income: Decimal

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def role_value(cls, v):
        return v.value if isinstance(v, Enum) else v


class DownlineResponse(BaseModel):
    """Downline of the current user, in breadth-first order."""

    user_id: str
    team_size: int
    personal_income: Decimal = Decimal("0.00")
    team_income: Decimal = Decimal("0.00")
    members: list[DownlineMember]


class IncomeRecordResponse(BaseModel):
    """A single commission credit."""

    id: str
    amount: Decimal
    granted_for_role: str
    source_type: str
    salesman_id: str
    customer_id: Optional[str]
    token_serial: Optional[str]
    sale_date: datetime

    model_config = {"from_attributes": True}
