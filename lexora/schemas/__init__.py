"""Pydantic schemas for request/response validation."""

from lexora.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordChange,
    PasswordOtpRequest,
)
from lexora.schemas.customer import (
    CommissionCreditResponse,
    CustomerCreate,
    CustomerRegistrationResponse,
    CustomerResponse,
)
from lexora.schemas.insights import InsightContext, InsightsResponse
from lexora.schemas.user import (
    DownlineMember,
    DownlineResponse,
    IncomeRecordResponse,
    SignupRequest,
    UserResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "PasswordOtpRequest",
    "PasswordChange",
    # User
    "SignupRequest",
    "UserResponse",
    "DownlineMember",
    "DownlineResponse",
    "IncomeRecordResponse",
    # Customer
    "CustomerCreate",
    "CustomerResponse",
    "CommissionCreditResponse",
    "CustomerRegistrationResponse",
    # Insights
    "InsightContext",
    "InsightsResponse",
]
