"""Type definitions for authentication."""

from dataclasses import dataclass


@dataclass
class TokenClaims:
    """Claims embedded in a JWT token.

    Attributes:
        user_id: The authenticated user's ID
        role: The user's role (viewer, editor or administrator)
        exp: Token expiration timestamp
        iat: Token issued-at timestamp
        type: Token type (only "access" tokens are accepted)
    """

    user_id: str
    role: str | None = None
    exp: int = 0
    iat: int = 0
    type: str = "access"
