"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead, or better, accept
a Settings instance in the constructor (PasswordHasher, TokenIssuer,
OtpGenerator and EmailSender are all built from one Settings in the lifespan).

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. access_token_secret -> ACCESS_TOKEN_SECRET).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Dev mode (DEBUG=true) generates missing token secrets with a
      warning; production mode refuses to start without them.

Security notes:
  Token secrets shorter than 32 chars are rejected outright. HS256 signing
  relies on key entropy.

  The access and refresh secrets must differ, otherwise a refresh token would
  pass signature verification as an access token (the type claim is checked
  too, but the secrets are the primary separation).

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or mail/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("accounts.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file (with DEBUG=true). The
    model_validator enforces production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///accounts.db"
    api_prefix: str = "/api/user"
    cors_origins: list[str] = ["http://localhost:3000"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    access_token_secret: str = ""
    refresh_token_secret: str = ""
    access_token_expire_seconds: int = 15 * 60
    refresh_token_expire_seconds: int = 24 * 60 * 60

    refresh_cookie_name: str = "refreshtoken"
    refresh_cookie_path: str = "/api/user/refresh_token"
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Credentials and verification
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 10
    otp_expire_seconds: int = 10 * 60

    # ------------------------------------------------------------------
    # Outbound email (SMTP over SSL)
    # ------------------------------------------------------------------

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    email_user: str = ""
    email_pass: str = ""
    email_from_name: str = "Verify Your Account"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Fail fast on missing or weak secrets.

        Dev mode (DEBUG=true): missing token secrets are generated, and a
            missing mailbox login switches the mailer to log-only mode.

        Production mode: every secret is required. A random token secret in
            production would invalidate all sessions on restart.
        """
        for field in ("access_token_secret", "refresh_token_secret"):
            value = getattr(self, field)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                setattr(self, field, secrets.token_hex(32))
                logger.warning("Using auto-generated %s. Tokens will not survive restarts.", field.upper())
            elif len(value) < _MIN_SECRET_LENGTH:
                raise ValueError(f"{field.upper()} must be at least {_MIN_SECRET_LENGTH} characters.")

        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ.")

        if not (self.email_user and self.email_pass):
            if not self.debug:
                raise ValueError("EMAIL_USER and EMAIL_PASS are required in production mode.")
            logger.warning("EMAIL_USER/EMAIL_PASS not set. Outgoing mail will be logged, not sent.")

        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self

    @property
    def mail_enabled(self) -> bool:
        return bool(self.email_user and self.email_pass)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
