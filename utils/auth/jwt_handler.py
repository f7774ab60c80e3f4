"""JWT token issuance and verification."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import JWTError, jwt, ExpiredSignatureError

from config import Settings
from database.models.user import User, UserRole
from utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
REQUIRED_CLAIMS = ("user_id", "email", "name", "role")


@dataclass(frozen=True)
class TokenPayload:
    """Verified identity carried by a bearer token. Only built by JWTHandler."""

    user_id: str
    email: str
    name: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime


class JWTHandler:
    """
    Signs and validates session tokens.

    Tokens are HS256 by default and carry ``user_id``, ``email``, ``name`` and
    ``role`` plus the standard ``iat``/``nbf``/``exp`` claims. Every verification
    failure surfaces as the same ``AuthenticationError("Unauthorized")``.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        leeway_seconds: int = 0,
        default_ttl: timedelta = timedelta(hours=24),
        remember_me_ttl: timedelta = timedelta(days=7),
    ):
        if not secret_key:
            raise ValueError("JWTHandler requires a secret key")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")

        self._secret_key = secret_key
        self.algorithm = algorithm
        self.leeway_seconds = leeway_seconds
        self.default_ttl = default_ttl
        self.remember_me_ttl = remember_me_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTHandler":
        """Build a handler from settings, falling back to a random secret if none is set."""
        secret_key = settings.secret_key
        if not secret_key:
            secret_key = secrets.token_urlsafe(64)
            logger.warning(
                "⚠️ SECRET_KEY is not set; using a random per-process signing key. "
                "Issued tokens will not survive a restart and are rejected by other workers. "
                "Set SECRET_KEY in the environment for any shared or production deployment."
            )
        return cls(
            secret_key=secret_key,
            algorithm=settings.jwt_algorithm,
            leeway_seconds=settings.jwt_leeway_seconds,
            default_ttl=timedelta(hours=settings.token_expire_hours),
            remember_me_ttl=timedelta(days=settings.remember_me_expire_days),
        )

    def token_ttl(self, remember_me: bool = False) -> timedelta:
        """Session lifetime for a login."""
        return self.remember_me_ttl if remember_me else self.default_ttl

    def issue(
        self,
        claims: Dict[str, Any],
        ttl: timedelta,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Create a signed token.

        Args:
            claims: Identity claims to embed
            ttl: Time until expiry
            now: Issuance time (defaults to the current UTC time)

        Returns:
            Encoded JWT with 'exp', 'iat' and 'nbf' claims added
        """
        to_encode = dict(claims)
        now = now or datetime.now(timezone.utc)
        to_encode.update({
            "exp": now + ttl,
            "iat": now,
            "nbf": now,
        })

        logger.debug(f"Creating JWT token for user_id={claims.get('user_id')} expiring in {ttl}")
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def create_access_token(self, user: User, remember_me: bool = False) -> str:
        """Issue a session token for a user."""
        role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
        claims = {
            "user_id": user.id,
            "email": user.email,
            "name": user.name,
            "role": role,
        }
        return self.issue(claims, self.token_ttl(remember_me))

    def verify_access_token(self, token: str) -> TokenPayload:
        """
        Verify and decode a token.

        Validates the signature, ``exp``/``nbf`` (with the configured leeway)
        and the presence of the identity claims.

        Raises:
            AuthenticationError: For any invalid, expired or malformed token
        """
        if not token:
            raise AuthenticationError("Unauthorized")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_nbf": True,
                    "verify_iat": True,
                    "require_exp": True,
                    "require_iat": True,
                    "leeway": self.leeway_seconds,
                },
            )
        except ExpiredSignatureError as e:
            logger.info("Rejected expired token")
            raise AuthenticationError("Unauthorized") from e
        except JWTError as e:
            logger.warning(f"JWT validation failed: {type(e).__name__}")
            raise AuthenticationError("Unauthorized") from e

        if any(not payload.get(claim) for claim in REQUIRED_CLAIMS):
            logger.warning("Token missing required identity claims")
            raise AuthenticationError("Unauthorized")

        try:
            return TokenPayload(
                user_id=str(payload["user_id"]),
                email=str(payload["email"]),
                name=str(payload["name"]),
                role=UserRole(payload["role"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (ValueError, TypeError) as e:
            logger.warning(f"Token claims malformed: {type(e).__name__}")
            raise AuthenticationError("Unauthorized") from e


__all__ = ["JWTHandler", "TokenPayload"]
