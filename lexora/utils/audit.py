"""
Audit trail for account and registration events.

Entries are added to the caller's session and committed with the change
they describe, so a rolled-back registration leaves no audit row behind.
"""

from typing import Any, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from lexora.models.audit import AuditAction, AuditLog
from lexora.models.customer import Customer
from lexora.models.user import User

AuditTarget = Union[Customer, User]

TARGET_TYPES = {
    Customer: "customer",
    User: "user",
}


async def log_action(
    db: AsyncSession,
    user_id: str,
    action: AuditAction,
    target: Optional[AuditTarget] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Record ``action`` by ``user_id``, optionally against a customer or user.

    Nothing is flushed here; the entry commits with the caller's work.
    """
    log_entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=TARGET_TYPES[type(target)] if target is not None else None,
        target_id=target.id if target is not None else None,
        action_metadata=action_metadata,
        ip_address=ip_address,
    )
    db.add(log_entry)
    return log_entry


def get_client_ip(request) -> Optional[str]:
    """
    Client address of a request.

    Behind a proxy the first X-Forwarded-For hop wins, then X-Real-IP,
    then the socket peer.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    client = getattr(request, "client", None)
    return client.host if client else None
