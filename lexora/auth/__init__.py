"""Authentication module."""

from lexora.auth.dependencies import get_current_user, require_admin, require_salesman
from lexora.auth.jwt import create_access_token, verify_token

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_user",
    "require_admin",
    "require_salesman",
]
