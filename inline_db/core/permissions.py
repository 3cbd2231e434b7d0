# File: /inline_db/core/permissions.py | Version: 2.0 | Title: Role matrix for database operations
from __future__ import annotations

from enum import Enum
from typing import Optional

from inline_db.core.errors import Forbidden
from inline_db.security import Principal


class Role(str, Enum):
    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"
    GUEST = "Guest"


# Lowest → Highest
ROLE_ORDER = [Role.GUEST, Role.MEMBER, Role.ADMIN, Role.OWNER]
ROLE_RANK = {r: i for i, r in enumerate(ROLE_ORDER)}


def _normalize_role(value: str | Role | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        normalized = value.strip().lower()
    except AttributeError:
        return None
    for r in Role:
        if r.value.lower() == normalized:
            return r
    return None


def has_min_role(principal: Principal, minimum: Role) -> bool:
    current = _normalize_role(principal.role)
    if current is None:
        return False
    return ROLE_RANK[current] >= ROLE_RANK[minimum]


def require_role(principal: Principal, minimum: Role, message: Optional[str] = None) -> Role:
    """
    Enforce that the caller holds at least `minimum` role in their organization.
    Raises Forbidden (403) if not; returns the resolved Role on success.
    """
    if not has_min_role(principal, minimum):
        raise Forbidden(message or f"Requires role '{minimum.value}' or higher.")
    return _normalize_role(principal.role)  # type: ignore[return-value]

