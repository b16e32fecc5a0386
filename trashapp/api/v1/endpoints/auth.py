import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trashapp.core import responses
from trashapp.core.database import get_db
from trashapp.core.dependencies import require_auth
from trashapp.models.user import User
from trashapp.schemas.auth import (
    EmailTokenRequest,
    GoogleCodeRequest,
    LoginRequest,
    PasswordChangeRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshTokenRequest,
    RegisterRequest,
)
from trashapp.schemas.user import UserProfile
from trashapp.services import google_oauth
from trashapp.services.auth import AuthService

router = APIRouter()


def _client_info(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
    }


@router.post("/register")
async def register(payload: RegisterRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Регистрация по email и паролю, сразу выдает пару токенов."""
    tokens = await AuthService(db).register(
        payload.name, payload.email, payload.password, **_client_info(request)
    )
    return responses.created(tokens, "User registered successfully")


@router.post("/login")
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    tokens = await AuthService(db).login(payload.email, payload.password, **_client_info(request))
    return responses.success(tokens, "Login successful")


@router.post("/logout")
async def logout(
    payload: Optional[RefreshTokenRequest] = None,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Отзывает переданный refresh-токен; успешен даже если токена нет."""
    await AuthService(db).logout(payload.refresh_token if payload else None)
    return responses.success({}, "Logged out successfully")


@router.get("/profile")
async def get_profile(current_user: User = Depends(require_auth)):
    return responses.success(
        UserProfile.model_validate(current_user).model_dump(),
        "Profile retrieved successfully",
    )


@router.post("/token/refresh")
async def refresh_token(payload: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    access_token = await AuthService(db).refresh_access_token(payload.refresh_token)
    return responses.success({"access_token": access_token, "token_type": "bearer"}, "Token refreshed successfully")


@router.post("/email/verify")
async def verify_email(payload: EmailTokenRequest, db: AsyncSession = Depends(get_db)):
    await AuthService(db).verify_email(payload.token)
    return responses.success({}, "Email verified successfully")


@router.post("/email/resend")
async def resend_email_verification(
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).resend_email_verification(current_user)
    return responses.success({}, "Verification email sent")


@router.post("/password/reset")
async def reset_password(payload: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    await AuthService(db).request_password_reset(payload.email)
    return responses.success({}, "Password reset email sent")


@router.post("/password/reset/confirm")
async def confirm_password_reset(payload: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    await AuthService(db).confirm_password_reset(payload.token, payload.password)
    return responses.success({}, "Password reset successfully")


@router.post("/password/change")
async def change_password(
    payload: PasswordChangeRequest,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).change_password(current_user, payload.current_password, payload.new_password)
    return responses.success({}, "Password changed successfully")


@router.get("/google/init")
async def google_auth_init():
    """Ссылка на страницу согласия Google; state проверяет клиент."""
    state = secrets.token_urlsafe(16)
    url = google_oauth.build_authorization_url(state)
    return responses.success({"auth_url": url, "state": state}, "Google OAuth initiated")


@router.get("/google/callback")
async def google_auth_callback(
    request: Request,
    code: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    profile = await google_oauth.exchange_code(code)
    tokens = await AuthService(db).google_login(profile, **_client_info(request))
    return responses.success(tokens, "Google login successful")


@router.post("/google/token")
async def google_token_exchange(payload: GoogleCodeRequest, request: Request, db: AsyncSession = Depends(get_db)):
    profile = await google_oauth.exchange_code(payload.code)
    tokens = await AuthService(db).google_login(profile, **_client_info(request))
    return responses.success(tokens, "Google login successful")


@router.post("/google/link")
async def link_google_account(
    payload: GoogleCodeRequest,
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    profile = await google_oauth.exchange_code(payload.code)
    user = await AuthService(db).link_google(current_user, profile)
    return responses.success(UserProfile.model_validate(user).model_dump(), "Google account linked")


@router.delete("/google/link")
async def unlink_google_account(
    current_user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    user = await AuthService(db).unlink_google(current_user)
    return responses.success(UserProfile.model_validate(user).model_dump(), "Google account unlinked")
