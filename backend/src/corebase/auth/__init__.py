"""Caller identity for Corebase."""

from corebase.auth.dependencies import (
    require_authenticated,
    require_role,
)
from corebase.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from corebase.auth.middleware import SYSTEM_USER_ID, AuthMiddleware, get_user_context
from corebase.auth.permissions import (
    PRIVILEGED_ROLE,
    ROLE_HIERARCHY,
    has_role_or_higher,
    is_privileged,
)
from corebase.auth.types import TokenClaims

__all__ = [
    "AuthMiddleware",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "PRIVILEGED_ROLE",
    "ROLE_HIERARCHY",
    "SYSTEM_USER_ID",
    "TokenClaims",
    "TokenExpiredError",
    "get_user_context",
    "has_role_or_higher",
    "is_privileged",
    "require_authenticated",
    "require_role",
]
