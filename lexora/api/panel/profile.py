"""Panel profile API endpoints: OTP-confirmed password change."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import get_current_user
from lexora.db import get_db
from lexora.models import AuditAction, User
from lexora.schemas.auth import PasswordChange, PasswordOtpRequest
from lexora.services.accounts import OtpError, change_password_with_otp, issue_password_otp
from lexora.services.sms import SmsError
from lexora.utils.audit import get_client_ip, log_action
from lexora.utils.password import verify_password

router = APIRouter(prefix="/profile")


@router.post("/password/otp")
async def request_password_otp(
    data: PasswordOtpRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Check the current password and text a verification code."""
    if not verify_password(data.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    try:
        await issue_password_otp(current_user)
    except OtpError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except SmsError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    return {"success": True, "message": "An OTP has been sent to your registered mobile number"}


@router.put("/password")
async def change_password(
    request: Request,
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Set a new password with the code from the SMS."""
    try:
        change_password_with_otp(current_user, data.otp, data.new_password)
    except OtpError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.PASSWORD_CHANGE,
        target=current_user,
        ip_address=get_client_ip(request),
    )

    return {"success": True, "message": "Password updated"}
