"""
Authentication Router

Registration, login, password reset and the caller's own account. Login and
forgot-password answer identically whether or not the email exists.
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_auth_service
from api.models import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    MessageResponse,
    UserEnvelope,
    UserResponse,
)
from database.models.user import UserRole
from middleware.rbac import get_current_identity, get_jwt_handler
from services.auth_service import AuthService
from utils.auth.jwt_handler import JWTHandler, TokenPayload
from utils.errors import ForbiddenError
from utils.monitoring import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
@router.post(
    "/signup",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Create a STUDENT account.

    **Errors:** 403 if another role is requested, 409 if the email belongs to
    a live account or to a deleted account of another role.
    """
    if body.role is not None and body.role != UserRole.STUDENT:
        logger.info("Registration with privileged role refused", role=body.role.value)
        raise ForbiddenError(
            f"Public registration cannot create {body.role.value} accounts",
            required_roles=[UserRole.ADMIN.value],
        )

    user = await auth_service.register(
        email=body.email,
        password=body.password,
        name=body.name,
        role=UserRole.STUDENT,
    )
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
):
    """
    Exchange email and password for a bearer token.

    The token lasts 24 hours, or 7 days with ``remember_me``.
    """
    user, token = await auth_service.login(
        email=body.email,
        password=body.password,
        remember_me=body.remember_me,
    )
    payload = jwt_handler.verify_access_token(token)
    return LoginResponse(
        user=UserResponse.model_validate(user),
        token=token,
        expires_at=payload.expires_at,
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Email a reset link if the account exists."""
    await auth_service.forgot_password(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Set a new password with a reset token.

    **Errors:** 400 if the token is unknown, used or expired.
    """
    await auth_service.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.get("/me", response_model=UserEnvelope)
async def me(
    identity: TokenPayload = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Current user."""
    user = await auth_service.get_profile(identity.user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(identity: TokenPayload = Depends(get_current_identity)):
    """Stateless: the client discards its token."""
    logger.info("User logged out", user_id=identity.user_id)
    return MessageResponse(message="Successfully logged out")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    identity: TokenPayload = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.change_password(
        identity.user_id,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    return MessageResponse(message="Password changed successfully")
