"""
RBAC Middleware

Role-based access control enforced at the route level through FastAPI
dependencies. Requests move Unauthenticated -> Authenticated(role) ->
Authorized | Forbidden; every guard is built from ``require_role``.
"""

from typing import Iterable, Optional, Sequence, Union

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from database.models.user import UserRole
from utils.auth.jwt_handler import JWTHandler, TokenPayload
from utils.errors import AuthenticationError, ForbiddenError
from utils.monitoring import get_logger

logger = get_logger(__name__)

# auto_error=False so a missing header becomes our 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)

RoleSpec = Union[UserRole, str]


# ============================================================================
# Token Extraction
# ============================================================================

def get_jwt_handler(request: Request) -> JWTHandler:
    """JWT handler built at startup."""
    return request.app.state.jwt_handler


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
) -> TokenPayload:
    """
    Verify the bearer token and return the caller's identity.

    Raises:
        AuthenticationError: Header missing, not a bearer token, or token invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized")

    identity = jwt_handler.verify_access_token(credentials.credentials)
    logger.debug("Authenticated request", user_id=identity.user_id, role=identity.role.value)
    return identity


# ============================================================================
# Role checks
# ============================================================================

def _normalize_roles(roles: Iterable[RoleSpec]) -> Sequence[UserRole]:
    normalized = []
    for role in roles:
        role = role if isinstance(role, UserRole) else UserRole(str(role).upper())
        if role not in normalized:
            normalized.append(role)
    return normalized


def check_role(identity: Optional[TokenPayload], allowed_roles: Iterable[RoleSpec]) -> TokenPayload:
    """
    Allow-list check of a verified identity.

    Raises:
        AuthenticationError: No identity
        ForbiddenError: Role not in the allow-list; the message names both sides
    """
    if identity is None:
        raise AuthenticationError("Unauthorized")

    allowed = _normalize_roles(allowed_roles)
    if identity.role not in allowed:
        required = ", ".join(role.value for role in allowed)
        logger.warning(
            "Access denied",
            user_id=identity.user_id,
            role=identity.role.value,
            required_roles=required,
        )
        raise ForbiddenError(
            f"Access denied. Required roles: {required}. Your role: {identity.role.value}",
            required_roles=[role.value for role in allowed],
        )
    return identity


def require_role(*allowed_roles: RoleSpec):
    """
    Dependency factory for requiring specific roles.

    Example:
        @router.delete("/{id}")
        async def remove(identity: TokenPayload = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    if len(allowed_roles) == 1 and isinstance(allowed_roles[0], (list, tuple, set)):
        allowed_roles = tuple(allowed_roles[0])
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")
    roles = _normalize_roles(allowed_roles)

    async def role_checker(
        identity: TokenPayload = Depends(get_current_identity)
    ) -> TokenPayload:
        return check_role(identity, roles)

    return role_checker


# ============================================================================
# Convenience Dependencies
# ============================================================================

async def require_admin(
    identity: TokenPayload = Depends(require_role(UserRole.ADMIN))
) -> TokenPayload:
    """Require the admin role."""
    return identity


async def require_faculty(
    identity: TokenPayload = Depends(require_role(UserRole.FACULTY))
) -> TokenPayload:
    """Require the faculty role."""
    return identity


async def require_student(
    identity: TokenPayload = Depends(require_role(UserRole.STUDENT))
) -> TokenPayload:
    """Require the student role."""
    return identity


async def require_faculty_or_admin(
    identity: TokenPayload = Depends(require_role(UserRole.FACULTY, UserRole.ADMIN))
) -> TokenPayload:
    """Require faculty or admin."""
    return identity


async def require_any_role(
    identity: TokenPayload = Depends(require_role(*UserRole))
) -> TokenPayload:
    """Require any authenticated role."""
    return identity


__all__ = [
    "security",
    "get_jwt_handler",
    "get_current_identity",
    "check_role",
    "require_role",
    "require_admin",
    "require_faculty",
    "require_student",
    "require_faculty_or_admin",
    "require_any_role",
]
