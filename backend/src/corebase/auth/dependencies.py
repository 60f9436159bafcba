"""FastAPI dependencies for authentication."""

from typing import Callable

from fastapi import HTTPException, Request

from corebase.auth.middleware import get_user_context
from corebase.auth.permissions import has_role_or_higher
from corebase.validation.types import UserContext


def require_authenticated(request: Request) -> UserContext:
    """Dependency that requires authentication.

    Raises:
        HTTPException 401 if not authenticated
    """
    user_context = get_user_context(request)
    if not user_context:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_context


def require_role(*required_roles: str) -> Callable[[Request], UserContext]:
    """Create a dependency that requires specific roles.

    The user must have at least one of the required roles, or a role
    higher in the hierarchy that implies the required role.

    Example:
        @router.post("/content-types")
        async def create(user: UserContext = Depends(require_role("administrator"))):
            ...
    """

    def dependency(request: Request) -> UserContext:
        user_context = require_authenticated(request)

        if any(has_role_or_higher(user_context, role) for role in required_roles):
            return user_context

        raise HTTPException(
            status_code=403,
            detail=f"Insufficient permissions. Required roles: {', '.join(required_roles)}",
        )

    return dependency
