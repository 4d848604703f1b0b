"""Utility functions."""

from lexora.utils.audit import get_client_ip, log_action
from lexora.utils.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "get_client_ip",
    "log_action",
]
