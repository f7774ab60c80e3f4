"""
JWT Handler Tests

Token issuance and every rejection path of verify_access_token():
1. Payload mutation (role escalation)
2. Wrong signing key
3. Algorithm mismatch
4. Expiry, with and without leeway
5. Missing or malformed identity claims
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from config import Settings
from database.models.base import new_id
from database.models.user import User, UserRole
from utils.auth.jwt_handler import JWTHandler, TokenPayload
from utils.errors import AuthenticationError

from tests.conftest import TEST_SECRET


# ============================================================================
# Helper Functions
# ============================================================================

def make_user(role: UserRole = UserRole.STUDENT) -> User:
    return User(id=new_id(), email="alice@example.com", name="Alice", role=role)


def tamper_payload(token: str, **mutations) -> str:
    """Rewrite the payload segment, keeping the original signature."""
    header, payload_b64, signature = token.split(".")
    padding = "=" * (-len(payload_b64) % 4)
    payload = json.loads(base64.urlsafe_b64decode(payload_b64 + padding))
    payload.update(mutations)
    new_payload = base64.urlsafe_b64encode(
        json.dumps(payload, separators=(",", ":")).encode()
    ).decode().rstrip("=")
    return f"{header}.{new_payload}.{signature}"


def claims_for(user: User) -> dict:
    return {"user_id": user.id, "email": user.email, "name": user.name, "role": user.role.value}


@pytest.fixture
def handler() -> JWTHandler:
    return JWTHandler(TEST_SECRET)


# ============================================================================
# Issuance
# ============================================================================

class TestIssue:
    """Valid tokens."""

    def test_round_trip_carries_identity(self, handler):
        user = make_user(UserRole.FACULTY)

        payload = handler.verify_access_token(handler.create_access_token(user))

        assert isinstance(payload, TokenPayload)
        assert payload.user_id == user.id
        assert payload.email == "alice@example.com"
        assert payload.name == "Alice"
        assert payload.role is UserRole.FACULTY

    def test_default_lifetime_is_24_hours(self, handler):
        payload = handler.verify_access_token(handler.create_access_token(make_user()))

        assert payload.expires_at - payload.issued_at == timedelta(hours=24)

    def test_remember_me_lifetime_is_7_days(self, handler):
        payload = handler.verify_access_token(
            handler.create_access_token(make_user(), remember_me=True)
        )

        assert payload.expires_at - payload.issued_at == timedelta(days=7)

    def test_from_settings_uses_configured_lifetimes(self):
        settings = Settings(secret_key=TEST_SECRET, token_expire_hours=2, remember_me_expire_days=3)
        handler = JWTHandler.from_settings(settings)

        assert handler.token_ttl() == timedelta(hours=2)
        assert handler.token_ttl(remember_me=True) == timedelta(days=3)

    def test_missing_secret_falls_back_to_random_key(self):
        settings = Settings(secret_key=None)
        first = JWTHandler.from_settings(settings)
        second = JWTHandler.from_settings(settings)

        token = first.create_access_token(make_user())

        assert first.verify_access_token(token).email == "alice@example.com"
        with pytest.raises(AuthenticationError):
            second.verify_access_token(token)

    def test_rejects_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            JWTHandler(TEST_SECRET, algorithm="none")


# ============================================================================
# Rejection
# ============================================================================

class TestVerify:
    """Every failure is AuthenticationError('Unauthorized')."""

    def test_role_escalation_is_rejected(self, handler):
        token = handler.create_access_token(make_user(UserRole.STUDENT))

        with pytest.raises(AuthenticationError) as exc:
            handler.verify_access_token(tamper_payload(token, role="ADMIN"))

        assert exc.value.message == "Unauthorized"
        assert exc.value.status_code == 401

    def test_user_id_mutation_is_rejected(self, handler):
        token = handler.create_access_token(make_user())

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(tamper_payload(token, user_id=new_id()))

    def test_wrong_key_is_rejected(self, handler):
        other = JWTHandler("another-secret-key-that-is-long-enough-000000")
        token = other.create_access_token(make_user())

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)

    def test_algorithm_mismatch_is_rejected(self, handler):
        user = make_user()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {**claims_for(user), "iat": now, "nbf": now, "exp": now + timedelta(hours=1)},
            TEST_SECRET,
            algorithm="HS512",
        )

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)

    def test_expired_token_is_rejected(self, handler):
        user = make_user()
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = handler.issue(claims_for(user), timedelta(hours=1), now=issued)

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)

    def test_leeway_tolerates_small_skew(self):
        user = make_user()
        lenient = JWTHandler(TEST_SECRET, leeway_seconds=60)
        issued = datetime.now(timezone.utc) - timedelta(minutes=10, seconds=5)
        token = lenient.issue(claims_for(user), timedelta(minutes=10), now=issued)

        assert lenient.verify_access_token(token).user_id == user.id

    @pytest.mark.parametrize("missing", ["user_id", "email", "name", "role"])
    def test_missing_identity_claim_is_rejected(self, handler, missing):
        claims = claims_for(make_user())
        claims.pop(missing)
        token = handler.issue(claims, timedelta(hours=1))

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)

    def test_unknown_role_is_rejected(self, handler):
        claims = {**claims_for(make_user()), "role": "SUPERUSER"}
        token = handler.issue(claims, timedelta(hours=1))

        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token_is_rejected(self, handler, token):
        with pytest.raises(AuthenticationError):
            handler.verify_access_token(token)
