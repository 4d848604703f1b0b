"""
Authentication API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lexora.auth.dependencies import get_current_user, get_current_user_optional
from lexora.auth.jwt import COOKIE_NAME, create_access_token
from lexora.config import settings
from lexora.db import get_db
from lexora.models import AuditAction, User
from lexora.schemas.auth import LoginRequest, LoginResponse
from lexora.schemas.user import SignupRequest, UserResponse
from lexora.services.accounts import SignupError, register_user
from lexora.utils.audit import get_client_ip, log_action
from lexora.utils.password import hash_password, password_needs_rehash, verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_auth_cookie(response: Response, user: User) -> None:
    token = create_access_token(user.id, user.role.value)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.jwt_expire_hours * 3600,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate user and set JWT cookie."""
    result = await db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(credentials.password)

    _set_auth_cookie(response, user)

    await log_action(
        db=db,
        user_id=user.id,
        action=AuditAction.LOGIN,
        ip_address=get_client_ip(request),
    )

    return LoginResponse(
        success=True,
        message="Login successful",
        role=user.role.value,
    )


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: Request,
    response: Response,
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account under the owner of the referral code.

    The new user's role is one rank below the referrer's.
    """
    try:
        user = await register_user(
            db,
            name=data.name,
            email=data.email,
            mobile_number=data.mobile_number,
            password=data.password,
            referral_code=data.referral_code,
            ip_address=get_client_ip(request),
        )
    except SignupError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    await db.refresh(user)
    _set_auth_cookie(response, user)
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user_optional),
):
    """Clear JWT cookie and log out."""
    if current_user:
        await log_action(
            db=db,
            user_id=current_user.id,
            action=AuditAction.LOGOUT,
            ip_address=get_client_ip(request),
        )

    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Profile of the logged-in user."""
    return UserResponse.model_validate(current_user)
