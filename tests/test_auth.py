from datetime import datetime, timedelta

import httpx
import pytest

from conftest import PASSWORD
from trashapp.core.config import settings
from trashapp.core.errors import AccountLockedError, AppError, ConflictError, UnauthorizedError
from trashapp.core.security import decode_access_token
from trashapp.models.user import User
from trashapp.services.auth import AuthService
from trashapp.services.google_oauth import (
    TOKEN_URL,
    GoogleProfile,
    exchange_code,
    profile_from_userinfo,
    resolve_google_user,
)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def send_email_verification(self, user, token):
        self.sent.append(("verify", user.email, token))

    async def send_password_reset(self, user, token):
        self.sent.append(("reset", user.email, token))


@pytest.mark.anyio
async def test_register_issues_tokens(db):
    tokens = await AuthService(db).register("Bea", "Bea@Example.com", PASSWORD)
    assert tokens["token_type"] == "bearer"
    assert tokens["user"]["email"] == "bea@example.com"
    assert tokens["user"]["role"] == "customer"
    assert decode_access_token(tokens["access_token"]) == tokens["user"]["id"]

    with pytest.raises(ConflictError):
        await AuthService(db).register("Bea again", "bea@example.com", PASSWORD)


@pytest.mark.anyio
async def test_failed_then_successful_login_resets_attempts(db, customer):
    service = AuthService(db)
    now = datetime(2026, 10, 19, 9, 0)
    for _ in range(3):
        with pytest.raises(UnauthorizedError):
            await service.login(customer.email, "wrong-password", now=now)
    assert customer.login_attempts == 3

    await service.login(customer.email, PASSWORD, now=now)
    assert customer.login_attempts == 0
    assert customer.lock_until is None
    assert customer.last_login == now


@pytest.mark.anyio
async def test_lock_after_max_attempts_rejects_correct_password(db, customer):
    service = AuthService(db)
    now = datetime(2026, 10, 19, 9, 0)
    for _ in range(settings.MAX_LOGIN_ATTEMPTS):
        with pytest.raises(UnauthorizedError):
            await service.login(customer.email, "wrong-password", now=now)
    assert customer.lock_until == now + timedelta(minutes=settings.LOCK_TIME_MINUTES)

    with pytest.raises(AccountLockedError) as exc:
        await service.login(customer.email, PASSWORD, now=now + timedelta(minutes=1))
    assert exc.value.status_code == 423


@pytest.mark.anyio
async def test_failure_after_lock_expiry_restarts_counter(db, customer):
    service = AuthService(db)
    now = datetime(2026, 10, 19, 9, 0)
    for _ in range(settings.MAX_LOGIN_ATTEMPTS):
        with pytest.raises(UnauthorizedError):
            await service.login(customer.email, "wrong-password", now=now)

    later = now + timedelta(minutes=settings.LOCK_TIME_MINUTES + 1)
    with pytest.raises(UnauthorizedError):
        await service.login(customer.email, "wrong-password", now=later)
    assert customer.login_attempts == 1
    assert customer.lock_until is None


@pytest.mark.anyio
async def test_unknown_email_is_unauthorized(db):
    with pytest.raises(UnauthorizedError):
        await AuthService(db).login("nobody@example.com", PASSWORD)


@pytest.mark.anyio
async def test_refresh_token_window(db, customer):
    service = AuthService(db)
    issued_at = datetime(2026, 10, 19, 9, 0)
    tokens = await service.login(customer.email, PASSWORD, now=issued_at)
    refresh = tokens["refresh_token"]

    just_inside = issued_at + timedelta(days=7) - timedelta(seconds=1)
    assert await service.refresh_access_token(refresh, now=just_inside)

    with pytest.raises(UnauthorizedError):
        await service.refresh_access_token(refresh, now=issued_at + timedelta(days=7, seconds=1))


@pytest.mark.anyio
async def test_logout_revokes_refresh_token(db, customer):
    service = AuthService(db)
    tokens = await service.login(customer.email, PASSWORD)

    await service.logout(tokens["refresh_token"])
    await service.logout("unknown-token")
    await service.logout(None)

    with pytest.raises(UnauthorizedError):
        await service.refresh_access_token(tokens["refresh_token"])

    with pytest.raises(AppError) as exc:
        await service.refresh_access_token(None)
    assert exc.value.code == "MISSING_REFRESH_TOKEN"


@pytest.mark.anyio
async def test_purge_expired_tokens(db, customer):
    service = AuthService(db)
    await service.login(customer.email, PASSWORD, now=datetime.utcnow() - timedelta(days=8))
    await service.login(customer.email, PASSWORD)

    assert await service.purge_expired_tokens() == 1


@pytest.mark.anyio
async def test_password_reset_flow(db, customer):
    notifier = RecordingNotifier()
    service = AuthService(db, notifier=notifier)
    await service.request_password_reset(customer.email)
    kind, email, token = notifier.sent[-1]
    assert (kind, email) == ("reset", customer.email)

    await service.confirm_password_reset(token, "new-secret")
    assert customer.password_reset_token is None
    await service.login(customer.email, "new-secret")

    with pytest.raises(AppError) as exc:
        await service.confirm_password_reset(token, "another-one")
    assert exc.value.code == "INVALID_TOKEN"


@pytest.mark.anyio
async def test_email_verification_flow(db, customer):
    notifier = RecordingNotifier()
    service = AuthService(db, notifier=notifier)
    await service.resend_email_verification(customer)
    token = notifier.sent[-1][2]

    await service.verify_email(token)
    assert customer.is_email_verified is True

    with pytest.raises(AppError) as exc:
        await service.resend_email_verification(customer)
    assert exc.value.code == "ALREADY_VERIFIED"


@pytest.mark.anyio
async def test_change_password_checks_current(db, customer):
    service = AuthService(db)
    with pytest.raises(AppError) as exc:
        await service.change_password(customer, "not-it", "brand-new")
    assert exc.value.code == "INVALID_PASSWORD"

    await service.change_password(customer, PASSWORD, "brand-new")
    await service.login(customer.email, "brand-new")


def _profile(**overrides):
    data = {"google_id": "g-123", "email": "ann@example.com", "name": "Ann G"}
    data.update(overrides)
    return GoogleProfile(**data)


def test_resolve_google_prefers_google_id():
    holder = User(name="Holder", email="holder@example.com", google_id="g-123", is_google_linked=False)
    same_email = User(name="Ann", email="ann@example.com")
    user, action = resolve_google_user(holder, same_email, _profile())
    assert user is holder
    assert action == "existing"
    assert holder.is_google_linked is True
    assert same_email.google_id is None


def test_resolve_google_links_by_email():
    same_email = User(name="Ann", email="ann@example.com", is_google_linked=False)
    user, action = resolve_google_user(None, same_email, _profile())
    assert action == "linked"
    assert user.google_id == "g-123"
    assert user.is_google_linked is True


def test_resolve_google_creates_user():
    user, action = resolve_google_user(None, None, _profile(email="new@example.com", name="Newbie"))
    assert action == "created"
    assert user.email == "new@example.com"
    assert user.hashed_password is None
    assert user.is_email_verified is True


def test_profile_from_userinfo():
    profile = profile_from_userinfo({"sub": "42", "email": " Ann@Example.com "})
    assert profile == GoogleProfile(google_id="42", email="ann@example.com", name="ann")

    with pytest.raises(AppError) as exc:
        profile_from_userinfo({"email": "x@example.com"})
    assert exc.value.code == "OAUTH_EXCHANGE_FAILED"


@pytest.mark.anyio
async def test_google_login_links_existing_account(db, customer):
    tokens = await AuthService(db).google_login(_profile())
    assert tokens["user"]["id"] == customer.id
    assert customer.google_id == "g-123"
    assert customer.is_google_linked is True


@pytest.mark.anyio
async def test_unlink_google_requires_password(db):
    user, _ = resolve_google_user(None, None, _profile(email="only-google@example.com"))
    db.add(user)
    await db.commit()

    with pytest.raises(AppError) as exc:
        await AuthService(db).unlink_google(user)
    assert exc.value.code == "PASSWORD_REQUIRED"


@pytest.fixture
def google_settings(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(settings, "GOOGLE_CALLBACK_URL", "http://localhost/callback")


def google_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_exchange_code_returns_profile(google_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "tok"})
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json={"sub": "g-9", "email": "Gil@Example.com", "name": "Gil"})

    async with google_client(handler) as client:
        profile = await exchange_code("code", client=client)
    assert profile == GoogleProfile(google_id="g-9", email="gil@example.com", name="Gil")


@pytest.mark.anyio
async def test_exchange_code_non_json_reply_is_bad_gateway(google_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    async with google_client(handler) as client:
        with pytest.raises(AppError) as exc:
            await exchange_code("code", client=client)
    assert exc.value.code == "OAUTH_EXCHANGE_FAILED"
    assert exc.value.status_code == 502


@pytest.mark.anyio
async def test_exchange_code_http_error_is_bad_gateway(google_settings):
    async with google_client(lambda request: httpx.Response(400, json={"error": "invalid_grant"})) as client:
        with pytest.raises(AppError) as exc:
            await exchange_code("code", client=client)
    assert exc.value.status_code == 502
