"""
auth/tokens.py -- Password hashing, JWT issuance and cookie utilities.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). The work factor comes
       from Settings.bcrypt_rounds so tests can run at the minimum cost of 4.
       PasswordHasher keeps a dummy hash computed at construction so a sign-in
       for an unknown email still pays one bcrypt verification and response
       time does not reveal whether the email is registered.

  JWT: python-jose with HS256. Access and refresh tokens are signed with two
       different secrets and carry a "type" claim, so neither can stand in for
       the other. Verification raises ExpiredTokenError / InvalidTokenError
       from core.errors; the HTTP layer maps both to the same outward status.

  Configuration is passed in explicitly (Settings instance). Nothing here reads
  the environment.

Layer rule: no imports from api/ or mail/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.errors import ExpiredTokenError, InvalidTokenError

if TYPE_CHECKING:
    from auth.models import User
    from core.config import Settings

logger = logging.getLogger("accounts.auth")

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class PasswordHasher:
    """bcrypt hashing with a configurable work factor.

    bcrypt rejects inputs longer than 72 bytes. Sign-up refuses such
    passwords (core/validators.py), and verify() reports them as a mismatch.
    """

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("accounts_timing_dummy")

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the hash. Never raises."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed or empty stored hash.
            return False

    def verify_dummy(self, plain: str) -> None:
        """Burn one verification against the dummy hash (timing equalization)."""
        self.verify(plain, self._dummy_hash)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Issues and verifies stateless access and refresh tokens."""

    def __init__(self, settings: Settings) -> None:
        self._secrets = {
            ACCESS: settings.access_token_secret,
            REFRESH: settings.refresh_token_secret,
        }
        self._lifetimes = {
            ACCESS: settings.access_token_expire_seconds,
            REFRESH: settings.refresh_token_expire_seconds,
        }

    @property
    def access_token_lifetime(self) -> int:
        return self._lifetimes[ACCESS]

    @property
    def refresh_token_lifetime(self) -> int:
        return self._lifetimes[REFRESH]

    def issue_access_token(self, user: User) -> str:
        return self._issue(user, ACCESS)

    def issue_refresh_token(self, user: User) -> str:
        return self._issue(user, REFRESH)

    def verify_access_token(self, token: str) -> dict:
        return self._verify(token, ACCESS)

    def verify_refresh_token(self, token: str) -> dict:
        return self._verify(token, REFRESH)

    def _issue(self, user: User, token_type: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "role": user.role.value,
            "type": token_type,
            "iat": now,
            "exp": now + timedelta(seconds=self._lifetimes[token_type]),
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=_ALGORITHM)

    def _verify(self, token: str, token_type: str) -> dict:
        """Decode and check a token of the given type.

        jose validates the signature and "exp" claim. ExpiredSignatureError is
        a JWTError subclass, so it has to be caught first.
        """
        try:
            payload = jwt.decode(token, self._secrets[token_type], algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError("Invalid token.") from exc
        except JWTError as exc:
            raise InvalidTokenError("Invalid token.") from exc
        if payload.get("type") != token_type or not payload.get("sub"):
            raise InvalidTokenError("Invalid token.")
        return payload


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_refresh_cookie(response, token: str, settings: Settings) -> None:
    """Write the refresh token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    path: scoped to the refresh endpoint so the token is not sent with every
        request to the API.
    max_age: matches the refresh token lifetime so both expire together.
    """
    response.set_cookie(
        settings.refresh_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        path=settings.refresh_cookie_path,
        max_age=settings.refresh_token_expire_seconds,
    )


def clear_refresh_cookie(response, settings: Settings) -> None:
    response.delete_cookie(settings.refresh_cookie_name, path=settings.refresh_cookie_path)
