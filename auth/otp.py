"""
auth/otp.py -- One-time verification codes.

generate() has no side effects: persisting the code and checking it later are
AccountService's job. Codes come from the secrets module so they cannot be
predicted from earlier codes.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

OTP_MIN = 100000
OTP_MAX = 999999


@dataclass(frozen=True)
class OneTimeCode:
    code: str
    expires_at: datetime


class OtpGenerator:
    def __init__(self, expire_seconds: int = 600) -> None:
        self.expire_seconds = expire_seconds

    def generate(self, now: datetime | None = None) -> OneTimeCode:
        """Return a 6-digit code, uniform over 100000-999999, and its expiry."""
        now = now or datetime.now(timezone.utc)
        code = str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
        return OneTimeCode(code=code, expires_at=now + timedelta(seconds=self.expire_seconds))
