"""
Referral hierarchy resolution.

The referral forest is stored as a referrer_id back-pointer on each user.
Children are found through an index built once per call, never kept as
global state.
"""

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Union

from lexora.models.user import ROLE_ORDER, User, UserRole

logger = logging.getLogger(__name__)

UserCollection = Union[Mapping[str, User], Iterable[User]]


class BrokenReferralChainError(Exception):
    """Raised in strict mode when a referrer_id does not resolve."""
    pass


class ReferralCycleError(Exception):
    """Raised in strict mode when the referral graph loops back on itself."""
    pass


class Downline(NamedTuple):
    ids: List[str]
    users: List[User]


def get_next_role_down(role: UserRole) -> UserRole:
    """Role assigned to someone who signs up under a user holding ``role``.

    Admin maps to Regional Director, Salesman stays Salesman.
    """
    if role == UserRole.ADMIN:
        return UserRole.REGIONAL_DIRECTOR
    index = ROLE_ORDER.index(role)
    return ROLE_ORDER[max(index - 1, 0)]


def index_users(all_users: UserCollection) -> Dict[str, User]:
    """Normalize a user list or id mapping into an id -> User dict."""
    if isinstance(all_users, Mapping):
        return dict(all_users)
    return {user.id: user for user in all_users}


def build_children_index(all_users: UserCollection) -> Dict[str, List[User]]:
    """Map each referrer id to its direct reports, in input order."""
    users = all_users.values() if isinstance(all_users, Mapping) else all_users
    children: Dict[str, List[User]] = {}
    for user in users:
        if user.referrer_id is not None:
            children.setdefault(user.referrer_id, []).append(user)
    return children


def get_downline_ids_and_users(
    user_id: str,
    all_users: UserCollection,
    strict: bool = False,
) -> Downline:
    """
    Collect everyone transitively referred by ``user_id``.

    Breadth-first, one level at a time, starting from the direct reports.
    The starting user is never part of the result and every reachable user
    appears exactly once.

    Args:
        user_id: Root of the downline
        all_users: Every known user, as a list or an id -> User mapping
        strict: Raise ReferralCycleError instead of skipping a user that
            is reached a second time

    Returns:
        Downline with the ids and User records in visitation order
    """
    children = build_children_index(all_users)

    visited = {user_id}
    queue = deque([user_id])
    ids: List[str] = []
    users: List[User] = []

    while queue:
        current_id = queue.popleft()
        for child in children.get(current_id, ()):
            if child.id in visited:
                if strict:
                    raise ReferralCycleError(
                        f"User {child.id} is reachable twice below {user_id}"
                    )
                continue
            visited.add(child.id)
            ids.append(child.id)
            users.append(child)
            queue.append(child.id)

    return Downline(ids=ids, users=users)


def iter_upline(
    user: User,
    users_by_id: Mapping[str, User],
    strict: bool = False,
) -> Iterator[User]:
    """
    Yield ``user`` and then each referrer above it up to the root.

    A referrer_id that does not resolve ends the walk quietly unless
    ``strict`` is set. Cycles are only detected in strict mode; otherwise
    the acyclic-forest invariant on users is assumed.
    """
    seen = set()
    current = user
    while current is not None:
        if strict:
            if current.id in seen:
                raise ReferralCycleError(f"Referral chain of {user.id} loops at {current.id}")
            seen.add(current.id)
        yield current

        if current.referrer_id is None:
            return
        referrer = users_by_id.get(current.referrer_id)
        if referrer is None:
            if strict:
                raise BrokenReferralChainError(
                    f"Referrer {current.referrer_id} of user {current.id} not found"
                )
            logger.warning(
                f"Referral chain of {user.id} truncated: referrer {current.referrer_id} not found"
            )
        current = referrer
