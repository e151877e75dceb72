"""Caller identity supplied by the upstream authentication layer."""

from __future__ import annotations

from fastapi import Header

from fablab.errors import ForbiddenError, UnauthorizedError

ADMIN_ROLE = "admin"


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise UnauthorizedError("Unauthorized")
    return x_user_id


def require_admin(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> str:
    if not x_user_id:
        raise UnauthorizedError("Unauthorized")
    if (x_user_role or "").lower() != ADMIN_ROLE:
        raise ForbiddenError("Admin access required")
    return x_user_id
