"""Add password-change OTP columns and audit action.

Revision ID: 001_add_password_otp
Revises: 000_initial_schema
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_add_password_otp"
down_revision: Union[str, None] = "000_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("users", sa.Column("otp_hash", sa.String(255), nullable=True))
    op.add_column(
        "users", sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=True)
    )
    op.execute("ALTER TYPE auditaction ADD VALUE IF NOT EXISTS 'password_change'")


def downgrade() -> None:
    op.drop_column("users", "otp_expires_at")
    op.drop_column("users", "otp_hash")
    # PostgreSQL does not support removing values from enums
