"""
RBAC Tests

Role checks and the dependency factory, exercised without an HTTP layer.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from database.models.user import UserRole
from middleware.rbac import check_role, get_current_identity, require_role
from utils.auth.jwt_handler import TokenPayload
from utils.errors import AuthenticationError, ForbiddenError

from tests.conftest import mint_token


def identity(role: UserRole) -> TokenPayload:
    now = datetime.now(timezone.utc)
    return TokenPayload(
        user_id="user-1",
        email="someone@example.com",
        name="Someone",
        role=role,
        issued_at=now,
        expires_at=now + timedelta(hours=1),
    )


class TestCheckRole:

    @pytest.mark.parametrize("role", list(UserRole))
    def test_allowed_role_passes(self, role):
        assert check_role(identity(role), [role]) is not None

    def test_denied_role_names_both_sides(self):
        with pytest.raises(ForbiddenError) as exc:
            check_role(identity(UserRole.STUDENT), [UserRole.FACULTY, UserRole.ADMIN])

        assert exc.value.status_code == 403
        assert exc.value.message == "Access denied. Required roles: FACULTY, ADMIN. Your role: STUDENT"
        assert exc.value.to_dict()["details"]["required_roles"] == ["FACULTY", "ADMIN"]

    def test_missing_identity_is_unauthorized(self):
        with pytest.raises(AuthenticationError):
            check_role(None, [UserRole.ADMIN])

    def test_roles_accept_strings(self):
        assert check_role(identity(UserRole.ADMIN), ["admin"]).role is UserRole.ADMIN


class TestRequireRole:

    @pytest.mark.asyncio
    async def test_checker_allows_and_denies(self):
        checker = require_role(UserRole.FACULTY, UserRole.ADMIN)

        assert (await checker(identity=identity(UserRole.FACULTY))).role is UserRole.FACULTY
        with pytest.raises(ForbiddenError):
            await checker(identity=identity(UserRole.STUDENT))

    @pytest.mark.asyncio
    async def test_accepts_a_list(self):
        checker = require_role([UserRole.ADMIN])

        with pytest.raises(ForbiddenError):
            await checker(identity=identity(UserRole.FACULTY))

    def test_empty_allow_list_is_a_programming_error(self):
        with pytest.raises(ValueError):
            require_role()


class TestCurrentIdentity:

    @pytest.mark.asyncio
    async def test_missing_credentials(self, jwt_handler):
        with pytest.raises(AuthenticationError):
            await get_current_identity(credentials=None, jwt_handler=jwt_handler)

    @pytest.mark.asyncio
    async def test_valid_bearer_token(self, jwt_handler):
        token = mint_token(jwt_handler, UserRole.FACULTY)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        result = await get_current_identity(credentials=credentials, jwt_handler=jwt_handler)

        assert result.role is UserRole.FACULTY

    @pytest.mark.asyncio
    async def test_invalid_bearer_token(self, jwt_handler):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="not.a.token")

        with pytest.raises(AuthenticationError):
            await get_current_identity(credentials=credentials, jwt_handler=jwt_handler)
