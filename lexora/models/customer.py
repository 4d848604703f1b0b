"""
Customer model: one token sale.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lexora.models.base import BaseModel

if TYPE_CHECKING:
    from lexora.models.ledger import IncomeRecord
    from lexora.models.user import User


class PaymentMethod(str, Enum):
    """How the customer pays for the purchase."""
    CASH = "cash"
    INSTALLMENTS = "installments"


class Customer(BaseModel):
    """
    Customer registered against a token sale.

    Created exactly once, in the same transaction that distributes the
    commission. Only commission_distributed may change afterwards.
    """

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    contact_info: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    token_serial: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    salesman_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    sale_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    commission_distributed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Optional details captured at registration
    nic: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="National identity card number",
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    whatsapp_number: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLAlchemyEnum(
            PaymentMethod,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PaymentMethod.CASH,
        nullable=False,
    )
    down_payment: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )

    # Relationships
    salesman: Mapped["User"] = relationship(
        "User",
        back_populates="customers",
    )
    income_records: Mapped[List["IncomeRecord"]] = relationship(
        "IncomeRecord",
        back_populates="customer",
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, token_serial='{self.token_serial}')>"
