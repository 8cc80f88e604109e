"""
tests/conftest.py -- Shared test fixtures for the account service.

This module provides:
  - RecordingMailer: stands in for EmailSender and keeps every OTP it was asked to send
  - make_store(): isolated named shared-memory SQLite UserStore
  - accounts: AccountService wired with a fresh store and RecordingMailer (unit level)
  - client: TestClient over the real app with a patched lifespan (integration level)
  - register(), admin_headers, user_headers: helpers for route tests
  - issuer_with(): tokens signed under altered settings (wrong secret, already expired)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG and BCRYPT_ROUNDS must be set before any app import: get_settings() then
generates token secrets instead of raising, runs without SMTP credentials, and
bcrypt runs at its minimum cost so the suite stays fast.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/auth/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite:///file:accounts_default?mode=memory&cache=shared&uri=true")

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_account_service
from auth.models import Role
from auth.service import AccountService, SignUpData
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import MailDeliveryError

_db_counter = itertools.count()

STRONG_PASSWORD = "Password123"


class RecordingMailer:
    """EmailSender double. Records (to, code) pairs; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send_otp(self, to: str, code: str) -> None:
        if self.fail:
            raise MailDeliveryError(f"Could not deliver email to {to}")
        self.sent.append((to, code))

    def last_code_for(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


def make_store() -> UserStore:
    """Fresh in-memory store; the counter keeps each test's DB separate."""
    return UserStore(db_url=f"sqlite:///file:accounts_test_{next(_db_counter)}?mode=memory&cache=shared&uri=true")


def issuer_with(**overrides) -> TokenIssuer:
    """TokenIssuer over the app settings with some fields replaced (another secret, a negative lifetime)."""
    return TokenIssuer(get_settings().model_copy(update=overrides))


def signup_data(email: str = "user@gmail.com", **overrides) -> SignUpData:
    values = {
        "personal_id": "2702342742",
        "name": "Boob Tester",
        "email": email,
        "password": STRONG_PASSWORD,
        "confirm_password": STRONG_PASSWORD,
        "address": "Jakarta",
        "phone_number": "085959975212",
    }
    values.update(overrides)
    return SignUpData(**values)


def signup_body(email: str = "user@gmail.com", **overrides) -> dict:
    body = {
        "personal_id": "2702342742",
        "name": "Boob Tester",
        "email": email,
        "password": STRONG_PASSWORD,
        "confirmPassword": STRONG_PASSWORD,
        "address": "Jakarta",
        "phone_number": "085959975212",
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def accounts(store: UserStore, mailer: RecordingMailer) -> AccountService:
    return build_account_service(store, mailer=mailer)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(accounts: AccountService):
    """Return a lifespan that installs a prepared AccountService instead of the real one."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.accounts = accounts
        yield

    return test_lifespan


@pytest.fixture
def client(accounts: AccountService) -> Generator[TestClient, None, None]:
    """TestClient over the real app, backed by this test's store and mailer."""
    app.router.lifespan_context = _patch_lifespan(accounts)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def prefix() -> str:
    return app.state.settings.api_prefix


@pytest.fixture
def register(accounts: AccountService):
    """Create a user directly through the service and return it.

    role=Role.ADMIN promotes the account after creation, the same way an
    operator would through the admin route.
    """

    def _register(email: str, role: Role = Role.USER, verified: bool = False):
        user = accounts.sign_up(signup_data(email=email))
        fields = {}
        if role != Role.USER:
            fields["role"] = role
        if verified:
            fields.update(is_verified=True, otp=None, otp_expires_at=None)
        if fields:
            user = accounts.store.update_user(user.id, **fields)
        return user

    return _register


@pytest.fixture
def admin_headers(accounts: AccountService, register) -> dict[str, str]:
    admin = register("admin@example.com", role=Role.ADMIN, verified=True)
    return {"Authorization": f"Bearer {accounts.tokens.issue_access_token(admin)}"}


@pytest.fixture
def user_headers(accounts: AccountService, register) -> dict[str, str]:
    user = register("member@example.com", verified=True)
    return {"Authorization": f"Bearer {accounts.tokens.issue_access_token(user)}"}
