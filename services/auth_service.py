"""
Authentication service.

Orchestrates the credential store, password hashing, token issuance and the
reset-token lifecycle. Collaborators are injected so the service never reaches
for a global session, signing key or mail transport.
"""

from datetime import timedelta
from typing import Any, Callable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings, settings as default_settings
from database.models.base import utcnow
from database.models.user import User, UserRole
from database.operations import user_ops, password_reset_ops
from utils.auth.jwt_handler import JWTHandler
from utils.auth.password import hash_password, verify_password, needs_rehash
from utils.email.email_service import EmailService
from utils.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    handle_errors,
)
from utils.monitoring import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

Scheduler = Callable[..., Any]


def run_now(func: Callable, *args, **kwargs) -> None:
    """Default scheduler: run the notification inline."""
    func(*args, **kwargs)


class AuthService:
    """Register, login, password reset and profile operations."""

    def __init__(
        self,
        session: AsyncSession,
        jwt_handler: JWTHandler,
        email_service: EmailService,
        schedule: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.jwt_handler = jwt_handler
        self.email_service = email_service
        self.schedule = schedule or run_now
        self.settings = settings or default_settings
        self._dummy_hash: Optional[str] = None

    # ------------------------------------------------------------------
    # Notifications (fire-and-forget)
    # ------------------------------------------------------------------

    def _dispatch(self, func: Callable, *args) -> None:
        try:
            self.schedule(func, *args)
        except Exception as e:
            logger.error(f"Failed to schedule notification {func.__name__}", error=e)

    @handle_errors(default_response=False)
    def _send_welcome(self, email: str, name: str) -> bool:
        return self.email_service.send_welcome_email(email, name)

    @handle_errors(default_response=False)
    def _send_reset_link(self, email: str, name: str, token: str) -> bool:
        return self.email_service.send_password_reset_email(email, name, token)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        """
        Create an account, or revive the soft-deleted one holding this email.

        Only a deleted account of the requested role is revived.

        Raises:
            ConflictError: A live user holds the email, or a deleted user of
                another role does
        """
        existing = await user_ops.get_user_by_email(self.session, email, include_deleted=True)
        if existing is not None and (not existing.is_deleted or existing.role != role):
            logger.info("Registration rejected, email taken", email=email, deleted=existing.is_deleted)
            raise ConflictError(user_ops.EMAIL_TAKEN_MESSAGE, field="email")

        password_hash = await hash_password(password, self.settings.bcrypt_rounds)
        user = await user_ops.create_user(
            self.session,
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
        )

        logger.info("User registered", user_id=user.id, role=user.role.value)
        self._dispatch(self._send_welcome, user.email, user.name)
        return user

    async def _dummy_verify(self, password: str) -> None:
        # Keep the unknown-email path as slow as a wrong password
        if self._dummy_hash is None:
            self._dummy_hash = await hash_password("not-a-real-password", self.settings.bcrypt_rounds)
        await verify_password(password, self._dummy_hash)

    async def login(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
    ) -> Tuple[User, str]:
        """
        Check credentials and issue a session token.

        Raises:
            AuthenticationError: Unknown email, deleted user or wrong password,
                all with the same message
        """
        user = await user_ops.get_user_by_email(self.session, email)
        if user is None:
            await self._dummy_verify(password)
            logger.info("Login failed", reason="unknown_email")
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not await verify_password(password, user.password_hash):
            logger.info("Login failed", reason="bad_password", user_id=user.id)
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if needs_rehash(user.password_hash, self.settings.bcrypt_rounds):
            new_hash = await hash_password(password, self.settings.bcrypt_rounds)
            await user_ops.update_password_hash(self.session, user, new_hash)

        token = self.jwt_handler.create_access_token(user, remember_me=remember_me)
        logger.info("Login succeeded", user_id=user.id, remember_me=remember_me)
        return user, token

    async def forgot_password(self, email: str) -> None:
        """
        Issue a reset token and mail the link, if the email belongs to a live user.

        Returns nothing either way so callers cannot tell whether the email exists.
        """
        user = await user_ops.get_user_by_email(self.session, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        reset_token = await password_reset_ops.create_reset_token(
            self.session,
            user.id,
            expires_in=timedelta(hours=self.settings.password_reset_token_expire_hours),
            revoke_previous=self.settings.password_reset_revoke_previous,
        )
        logger.info("Password reset token issued", user_id=user.id)
        self._dispatch(self._send_reset_link, user.email, user.name, reset_token.token)

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password using a reset token.

        Raises:
            ValidationError: Token unknown, used, expired or owned by a deleted user
        """
        reset_token = await password_reset_ops.get_reset_token(self.session, token)
        if not password_reset_ops.is_token_redeemable(reset_token, utcnow()):
            raise ValidationError(password_reset_ops.INVALID_RESET_TOKEN_MESSAGE, field="token")

        password_hash = await hash_password(new_password, self.settings.bcrypt_rounds)
        user = await password_reset_ops.redeem_reset_token(self.session, token, password_hash)
        logger.info("Password reset", user_id=user.id)

    async def get_profile(self, user_id: str) -> User:
        """
        Raises:
            NotFoundError: No live user with this id
        """
        user = await user_ops.get_user_by_id(self.session, user_id)
        if user is None:
            raise NotFoundError("User not found", resource="user")
        return user

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        return await user_ops.update_user(self.session, user_id, name=name, email=email)

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            NotFoundError: No live user with this id
            AuthenticationError: Current password is wrong
        """
        user = await self.get_profile(user_id)
        if not await verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        password_hash = await hash_password(new_password, self.settings.bcrypt_rounds)
        await user_ops.update_password_hash(self.session, user, password_hash)
        logger.info("Password changed", user_id=user.id)


__all__ = ["AuthService", "INVALID_CREDENTIALS_MESSAGE", "run_now"]
