"""Role checks for content and schema operations."""

from corebase.validation.types import UserContext

# Role hierarchy - higher number = more permissions
# Higher roles automatically have all permissions of lower roles
ROLE_HIERARCHY = {
    "viewer": 1,
    "editor": 2,
    "administrator": 3,
}

# Callers at or above this role may approve publication and modify any entry
PRIVILEGED_ROLE = "administrator"


def _role_level(role: str | None) -> int:
    """Return numeric level for a role name, 0 if unknown/None."""
    return ROLE_HIERARCHY.get(role or "", 0)


def _user_role_level(user_context: UserContext | None) -> int:
    """Return the highest role level the user holds."""
    if not user_context or not user_context.roles:
        return 0
    return max(_role_level(role) for role in user_context.roles)


def has_role_or_higher(user_context: UserContext | None, required_role: str) -> bool:
    """Check if user has the required role or a higher one.

    Unknown required roles are never satisfied.
    """
    required_level = ROLE_HIERARCHY.get(required_role)
    if required_level is None:
        return False
    return _user_role_level(user_context) >= required_level


def is_privileged(user_context: UserContext | None) -> bool:
    return has_role_or_higher(user_context, PRIVILEGED_ROLE)
