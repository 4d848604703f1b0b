"""
Income record model for commission tracking.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lexora.models.base import BaseModel

if TYPE_CHECKING:
    from lexora.models.customer import Customer
    from lexora.models.user import User


SOURCE_TOKEN_SALE = "token_sale"


class IncomeRecord(BaseModel):
    """
    One commission credit to one user.

    Written in the same transaction as the total_income increment it
    explains, so the sum of a user's records always matches their total.
    """

    __tablename__ = "income_records"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    granted_for_role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Role of the credited user at the time of the sale",
    )
    source_type: Mapped[str] = mapped_column(
        String(20),
        default=SOURCE_TOKEN_SALE,
        nullable=False,
    )
    salesman_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    customer_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("customers.id"),
        nullable=True,
        index=True,
    )
    token_serial: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    sale_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    customer: Mapped[Optional["Customer"]] = relationship(
        "Customer",
        back_populates="income_records",
    )

    def __repr__(self) -> str:
        return f"<IncomeRecord(id={self.id}, user_id={self.user_id}, amount={self.amount})>"
