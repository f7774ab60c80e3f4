"""
Test Configuration and Utilities

- In-memory SQLite database per test
- Auth service wired with a mock email service
- FastAPI test client running the real lifespan
- Helpers for minting tokens and creating accounts
"""

import os

# Must be set before config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["TESTING"] = "true"
os.environ["EMAIL_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-trench-suite-0123456789")

from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database.core import Database
from database.models.base import new_id
from database.models.user import User, UserRole
from services.auth_service import AuthService
from utils.auth.jwt_handler import JWTHandler
from utils.email.email_service import EmailService

TEST_SECRET = "test-secret-key-for-the-trench-suite-0123456789"
API = "/api/v1"


# ============================================================================
# Core fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings for an isolated in-memory deployment."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        testing=True,
        email_enabled=False,
        frontend_url="http://localhost:3000",
    )


@pytest.fixture
async def database(test_settings):
    """Fresh in-memory database with all tables."""
    database = Database.from_settings(test_settings)
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def jwt_handler(test_settings) -> JWTHandler:
    return JWTHandler.from_settings(test_settings)


@pytest.fixture
def email_service():
    """Email service double recording every send."""
    service = MagicMock(spec=EmailService)
    service.send_welcome_email.return_value = True
    service.send_password_reset_email.return_value = True
    return service


@pytest.fixture
def auth_service(session, jwt_handler, email_service, test_settings) -> AuthService:
    return AuthService(
        session=session,
        jwt_handler=jwt_handler,
        email_service=email_service,
        settings=test_settings,
    )


# ============================================================================
# API fixtures
# ============================================================================

@pytest.fixture
def app(test_settings, email_service):
    from api.app import create_app

    app = create_app(test_settings)
    app.state.email_service = email_service
    return app


@pytest.fixture
def client(app):
    """Test client; entering it runs the lifespan (tables, JWT handler)."""
    with TestClient(app) as client:
        yield client


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def mint_token(jwt_handler: JWTHandler, role: UserRole = UserRole.ADMIN, email: Optional[str] = None) -> str:
    """Sign a token for an identity that has no stored account."""
    user = User(
        id=new_id(),
        email=email or f"{role.value.lower()}@trench.dev",
        name=f"Root {role.value.title()}",
        role=role,
    )
    return jwt_handler.create_access_token(user)


@pytest.fixture
def admin_headers(client, app) -> Dict[str, str]:
    return bearer(mint_token(app.state.jwt_handler, UserRole.ADMIN))


def register(client: TestClient, email: str, password: str = "secret123", name: str = "Test User"):
    return client.post(f"{API}/auth/register", json={"email": email, "password": password, "name": name})


def login(client: TestClient, email: str, password: str = "secret123", **extra):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password, **extra})


def login_headers(client: TestClient, email: str, password: str = "secret123") -> Dict[str, str]:
    response = login(client, email, password)
    assert response.status_code == 200, response.text
    return bearer(response.json()["token"])
