"""Authentication middleware for FastAPI."""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from corebase.auth.jwt_service import JWTError, JWTService
from corebase.auth.permissions import PRIVILEGED_ROLE
from corebase.validation.types import UserContext

# Caller used for every request when authentication is disabled
SYSTEM_USER_ID = "system"


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts JWT from Authorization header and sets user context.

    The middleware:
    1. Extracts Bearer token from Authorization header
    2. Decodes and validates the JWT
    3. Sets request.state.user_context with the claims

    If no token is present or token is invalid, user_context is set to None.
    The middleware does NOT reject unauthenticated requests - that's handled
    by the endpoint dependencies.

    The JWT service and the disabled flag are looked up per request because
    they are configured in the application lifespan, after the middleware
    stack is built. When authentication is disabled every request runs as
    the privileged system user.
    """

    def __init__(
        self,
        app,
        get_jwt_service: Callable[[], JWTService | None],
        get_auth_disabled: Callable[[], bool],
    ):
        super().__init__(app)
        self._get_jwt_service = get_jwt_service
        self._get_auth_disabled = get_auth_disabled

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process the request and extract authentication info."""
        request.state.user_context = None
        request.state.token_claims = None

        if self._get_auth_disabled():
            request.state.user_context = UserContext(
                user_id=SYSTEM_USER_ID, roles=[PRIVILEGED_ROLE]
            )
            return await call_next(request)

        jwt_service = self._get_jwt_service()
        auth_header = request.headers.get("Authorization")
        if jwt_service and auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]  # Remove "Bearer " prefix
            try:
                claims = jwt_service.decode_token(token)

                # Only accept access tokens
                if claims.type == "access":
                    request.state.token_claims = claims
                    request.state.user_context = UserContext(
                        user_id=claims.user_id,
                        roles=[claims.role] if claims.role else [],
                    )
            except JWTError:
                # Invalid token - leave user_context as None
                pass

        return await call_next(request)


def get_user_context(request: Request) -> UserContext | None:
    """Get the user context from the request state."""
    return getattr(request.state, "user_context", None)
