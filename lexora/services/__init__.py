"""Business logic services."""

from lexora.services.commission import create_customer, plan_commission_cascade
from lexora.services.hierarchy import get_downline_ids_and_users, get_next_role_down

__all__ = [
    "create_customer",
    "plan_commission_cascade",
    "get_downline_ids_and_users",
    "get_next_role_down",
]
