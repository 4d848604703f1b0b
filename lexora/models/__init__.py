"""
Database models for LEXORA.

All models are exported here for convenient imports:
    from lexora.models import User, Customer, IncomeRecord, etc.
"""

from lexora.models.audit import AuditAction, AuditLog
from lexora.models.base import Base, BaseModel, TimestampMixin, generate_id
from lexora.models.customer import Customer, PaymentMethod
from lexora.models.ledger import SOURCE_TOKEN_SALE, IncomeRecord
from lexora.models.user import ROLE_ORDER, User, UserRole, generate_referral_code

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    "generate_id",
    # User
    "User",
    "UserRole",
    "ROLE_ORDER",
    "generate_referral_code",
    # Customer
    "Customer",
    "PaymentMethod",
    # Ledger
    "IncomeRecord",
    "SOURCE_TOKEN_SALE",
    # Audit
    "AuditLog",
    "AuditAction",
]
