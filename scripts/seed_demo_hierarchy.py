"""
Seed a demo referral hierarchy and one token sale.

Usage:
    python scripts/seed_demo_hierarchy.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_hierarchy.py

This script creates:
- The root admin (if missing)
- One user per rank below it, each referred by the previous one
- One customer registered by the salesman, with commissions distributed
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from lexora.config import settings
from lexora.db import get_db_context
from lexora.models import Customer, User
from lexora.schemas.customer import CustomerCreate
from lexora.services.accounts import ensure_root_admin, register_user
from lexora.services.commission import create_customer

DEMO_PASSWORD = "demo1234"

DEMO_USERS = [
    ("Ruwan Perera", "rd@demo.lexora.lk", "0711000001"),
    ("Nimal Silva", "hgm@demo.lexora.lk", "0711000002"),
    ("Kamal Fernando", "gom@demo.lexora.lk", "0711000003"),
    ("Sunil Jayasinghe", "tom@demo.lexora.lk", "0711000004"),
    ("Chathura Bandara", "salesman@demo.lexora.lk", "0711000005"),
]

DEMO_CUSTOMER = CustomerCreate(
    name="Dilani Wickramasinghe",
    contact_info="0779876543",
    address="12 Temple Road, Kandy",
    token_serial="DEMO-0001",
)


async def seed() -> None:
    async with get_db_context() as db:
        referrer = await ensure_root_admin(db, settings.admin_email, settings.admin_password)

        for name, email, mobile in DEMO_USERS:
            existing = (
                await db.execute(select(User).where(User.email == email))
            ).scalar_one_or_none()
            if existing:
                print(f"{existing.role.value} already exists: {email}")
                referrer = existing
                continue

            user = await register_user(
                db, name, email, mobile, DEMO_PASSWORD, referrer.referral_code or ""
            )
            print(f"Created {user.role.value}: {email} / {DEMO_PASSWORD}")
            referrer = user

        await db.commit()

        salesman = referrer
        sold = await db.scalar(
            select(Customer.id).where(Customer.token_serial == DEMO_CUSTOMER.token_serial)
        )
        if sold:
            print(f"Token {DEMO_CUSTOMER.token_serial} already registered")
            return

        all_users = (await db.execute(select(User))).scalars().all()
        customer = await create_customer(db, DEMO_CUSTOMER, salesman, all_users)
        print(f"Registered customer {customer.name} with token {customer.token_serial}")

        for user in (await db.execute(select(User).order_by(User.total_income.desc()))).scalars():
            await db.refresh(user)
            print(f"  {user.role.value:<25} {user.email:<30} {user.total_income}")


if __name__ == "__main__":
    asyncio.run(seed())
