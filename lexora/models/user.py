"""
User model: a node in the referral forest.
"""

import secrets
import string
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lexora.models.base import BaseModel

if TYPE_CHECKING:
    from lexora.models.audit import AuditLog
    from lexora.models.customer import Customer


class UserRole(str, Enum):
    """Sales ranks, lowest first."""
    SALESMAN = "Salesman"
    TEAM_OPERATION_MANAGER = "Team Operation Manager"
    GROUP_OPERATION_MANAGER = "Group Operation Manager"
    HEAD_GROUP_MANAGER = "Head Group Manager"
    REGIONAL_DIRECTOR = "Regional Director"
    ADMIN = "Admin"

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)


# Explicit total order, lowest rank first
ROLE_ORDER = (
    UserRole.SALESMAN,
    UserRole.TEAM_OPERATION_MANAGER,
    UserRole.GROUP_OPERATION_MANAGER,
    UserRole.HEAD_GROUP_MANAGER,
    UserRole.REGIONAL_DIRECTOR,
    UserRole.ADMIN,
)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 6


def generate_referral_code() -> str:
    """Generate a random 6-character referral code."""
    return "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH)
    )


class User(BaseModel):
    """
    User account model.

    referrer_id is a back-reference to whoever referred this user, not
    ownership. Following it repeatedly ends at the root Admin.
    total_income is only ever changed by the commission cascade.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    mobile_number: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    referrer_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    referral_code: Mapped[Optional[str]] = mapped_column(
        String(REFERRAL_CODE_LENGTH),
        unique=True,
        index=True,
        nullable=True,
        comment="Code other users enter at signup to join under this user",
    )
    total_income: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Pending verification code for a password change
    otp_hash: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    customers: Mapped[List["Customer"]] = relationship(
        "Customer",
        back_populates="salesman",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
