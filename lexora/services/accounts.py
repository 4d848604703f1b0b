"""
Accounts: referral-code signup, root admin bootstrap and OTP-confirmed
password changes.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.config import settings
from lexora.models import AuditAction, User, UserRole, generate_referral_code
from lexora.services.hierarchy import get_next_role_down
from lexora.services.sms import send_otp_sms
from lexora.utils.audit import log_action
from lexora.utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)


class SignupError(ValueError):
    """Raised when a signup request cannot be honoured."""
    pass


class OtpError(ValueError):
    """Raised when a verification code is missing, wrong or expired."""
    pass


async def _unique_referral_code(db: AsyncSession) -> str:
    while True:
        code = generate_referral_code()
        existing = await db.scalar(select(User.id).where(User.referral_code == code))
        if existing is None:
            return code


async def get_user_by_referral_code(db: AsyncSession, code: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.referral_code == code.strip().upper())
    )
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    name: str,
    email: str,
    mobile_number: str,
    password: str,
    referral_code: str,
    ip_address: Optional[str] = None,
) -> User:
    """
    Create a user one rank below whoever owns ``referral_code``.

    Salesmen do not get a referral code of their own since nobody can
    sign up below them.

    Raises:
        SignupError: unknown referral code or email already registered,
            including a registration that wins the race after the checks
    """
    referrer = await get_user_by_referral_code(db, referral_code)
    if referrer is None:
        raise SignupError("Invalid referrer code. Please check the code and try again.")

    email = email.strip().lower()
    taken = await db.scalar(select(User.id).where(User.email == email))
    if taken is not None:
        raise SignupError("An account with this email already exists.")

    role = get_next_role_down(referrer.role)
    user = User(
        name=name.strip(),
        email=email,
        mobile_number=mobile_number,
        password_hash=hash_password(password),
        role=role,
        referrer_id=referrer.id,
        referral_code=None if role == UserRole.SALESMAN else await _unique_referral_code(db),
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # A concurrent signup took the email or referral code after the checks above
        await db.rollback()
        logger.warning(f"Signup for {email} lost a uniqueness race: {e}")
        raise SignupError("An account with this email already exists.") from e

    await log_action(
        db=db,
        user_id=user.id,
        action=AuditAction.SIGNUP,
        target=referrer,
        action_metadata={"role": role.value},
        ip_address=ip_address,
    )

    logger.info(f"User {user.id} signed up as {role.value} under {referrer.id}")
    return user


async def ensure_root_admin(db: AsyncSession, email: str, password: str) -> User:
    """Create the root Admin if no Admin exists yet."""
    result = await db.execute(
        select(User).where(User.role == UserRole.ADMIN).limit(1)
    )
    admin = result.scalar_one_or_none()
    if admin:
        return admin

    logger.info("Creating root admin account...")
    admin = User(
        name="Admin",
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
        referrer_id=None,
        referral_code=await _unique_referral_code(db),
        is_active=True,
    )
    db.add(admin)
    await db.flush()
    logger.info(f"Root admin created: {admin.email} (referral code {admin.referral_code})")
    return admin


def generate_otp() -> str:
    """Six-digit verification code, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


async def issue_password_otp(user: User) -> None:
    """
    Store a fresh verification code for ``user`` and text it to them.

    Only the hash is kept. A new code replaces any pending one.

    Raises:
        OtpError: the user has no mobile number on file
        SmsError: the code could not be delivered
    """
    if not user.mobile_number:
        raise OtpError("No mobile number is registered for this account.")

    otp = generate_otp()
    user.otp_hash = hash_password(otp)
    user.otp_expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=settings.otp_expire_minutes
    )
    await send_otp_sms(user.mobile_number, otp)
    logger.info(f"Password change code sent to user {user.id}")


def change_password_with_otp(user: User, otp: str, new_password: str) -> None:
    """
    Replace the password once ``otp`` matches the pending code.

    The code is single use: it is cleared on success.

    Raises:
        OtpError: no pending code, code expired, or code mismatch
    """
    if not user.otp_hash or not user.otp_expires_at:
        raise OtpError("No verification code was requested.")

    expires_at = user.otp_expires_at
    if expires_at.tzinfo is None:
        # SQLite hands back naive timestamps
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise OtpError("The verification code has expired.")

    if not verify_password(otp, user.otp_hash):
        raise OtpError("The verification code is incorrect.")

    user.password_hash = hash_password(new_password)
    user.otp_hash = None
    user.otp_expires_at = None
    logger.info(f"Password changed for user {user.id}")
