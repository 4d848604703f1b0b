"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response."""

    success: bool
    message: str
    role: str = Field(default="")


class PasswordOtpRequest(BaseModel):
    """Start a password change; the code goes to the registered mobile."""

    current_password: str = Field(..., min_length=1)


class PasswordChange(BaseModel):
    """Finish a password change with the code received by SMS."""

    otp: str = Field(..., pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=6, max_length=100)
