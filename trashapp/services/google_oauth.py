import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlencode

import httpx

from trashapp.core.config import settings
from trashapp.core.errors import AppError
from trashapp.models.user import User

logger = logging.getLogger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = ("openid", "email", "profile")


@dataclass(frozen=True)
class GoogleProfile:
    google_id: str
    email: str
    name: str


def require_configured() -> None:
    if not settings.google_oauth_enabled:
        raise AppError("Google OAuth is not configured", "OAUTH_NOT_CONFIGURED", status_code=503)


def build_authorization_url(state: str) -> str:
    require_configured()
    query = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_CALLBACK_URL,
        "response_type": "code",
        "scope": " ".join(SCOPES),
        "access_type": "online",
        "prompt": "select_account",
        "state": state,
    }
    return f"{AUTHORIZATION_URL}?{urlencode(query)}"


def profile_from_userinfo(data: dict) -> GoogleProfile:
    google_id = data.get("sub") or data.get("id")
    email = (data.get("email") or "").strip().lower()
    if not google_id or not email:
        raise AppError("Google profile has no id or email", "OAUTH_EXCHANGE_FAILED", status_code=502)
    name = (data.get("name") or "").strip() or email.split("@")[0]
    return GoogleProfile(google_id=str(google_id), email=email, name=name)


async def exchange_code(code: str, client: Optional[httpx.AsyncClient] = None) -> GoogleProfile:
    """Trade an authorization code for the user's Google profile."""
    require_configured()
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.OAUTH_HTTP_TIMEOUT)
    try:
        token_resp = await client.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": settings.GOOGLE_CALLBACK_URL,
                "grant_type": "authorization_code",
            },
        )
        token_resp.raise_for_status()
        access_token = token_resp.json().get("access_token")
        if not access_token:
            raise AppError("Google did not return an access token", "OAUTH_EXCHANGE_FAILED", status_code=502)

        info_resp = await client.get(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        info_resp.raise_for_status()
        return profile_from_userinfo(info_resp.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Google code exchange failed: %s", e)
        raise AppError("Google authentication failed", "OAUTH_EXCHANGE_FAILED", status_code=502) from e
    finally:
        if owns_client:
            await client.aclose()


def resolve_google_user(
    by_google_id: Optional[User],
    by_email: Optional[User],
    profile: GoogleProfile,
) -> Tuple[User, str]:
    """Pick the account a Google login belongs to.

    Priority: the user already holding this Google id, then a user with the
    same email (which gets linked), then a brand new user. Returns the user
    and one of ``existing``, ``linked``, ``created``. The caller persists it.
    """
    if by_google_id is not None:
        if not by_google_id.is_google_linked:
            by_google_id.is_google_linked = True
            by_google_id.google_email = profile.email
        return by_google_id, "existing"

    if by_email is not None:
        by_email.google_id = profile.google_id
        by_email.google_email = profile.email
        by_email.is_google_linked = True
        return by_email, "linked"

    user = User(
        name=profile.name,
        email=profile.email,
        hashed_password=None,
        role="customer",
        google_id=profile.google_id,
        google_email=profile.email,
        is_google_linked=True,
        is_email_verified=True,
        is_active=True,
        login_attempts=0,
    )
    return user, "created"
