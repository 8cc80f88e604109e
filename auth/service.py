"""
auth/service.py -- Account flows: sign-up, sign-in, verification, profiles, admin.

AccountService orchestrates the store, hasher, token issuer, OTP generator and
mailer. It raises core.errors exceptions and never builds HTTP responses; the
route layer calls one method per request and the app-level exception handler
turns any AccountError into the error envelope.

Anti-enumeration rules:
  sign_in() gives the same "Invalid Credentials" error for an unknown email, an
  inactive account and a wrong password, and runs bcrypt in every case.
  verify_email() gives the same "Invalid or expired OTP" error for a wrong code
  and an expired one.

Notification semantics:
  sign_up() persists the user before sending the OTP email. A mail failure is
  logged and does not undo the registration; the user can ask for a new code
  through resend_otp().

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from auth.models import SOCIAL_PLATFORMS, Role, Status, User, default_avatar_url
from auth.store import to_iso
from core import validators
from core.errors import (
    ConflictError,
    InvalidTokenError,
    MailDeliveryError,
    MissingTokenError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from auth.otp import OtpGenerator
    from auth.store import UserStore
    from auth.tokens import PasswordHasher, TokenIssuer
    from mail.sender import EmailSender

logger = logging.getLogger("accounts.auth")

MSG_MISSING_FIELDS = "Please fill in all fields"
MSG_NAME_TOO_SHORT = "Your name must be at least 3 letters long"
MSG_PASSWORD_MISMATCH = "Password did not match"
MSG_INVALID_EMAIL = "Invalid email"
MSG_WEAK_PASSWORD = (
    "Password should be 6 to 20 characters long with at least one number, one lowercase and one uppercase letter"
)
MSG_EMAIL_TAKEN = "This email is already registered"
MSG_BAD_CREDENTIALS = "Invalid Credentials"
MSG_MISSING_OTP = "Please provide email and OTP"
MSG_BAD_OTP = "Invalid or expired OTP"
MSG_RESEND_REJECTED = "Invalid or already verified email"
MSG_BIO_TOO_LONG = "Bio must be at most 250 characters"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass
class SignUpData:
    personal_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass
class ProfileUpdate:
    """Fields a user may change on their own record."""

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    social_links: Optional[dict[str, str]] = None


@dataclass
class AdminUserUpdate(ProfileUpdate):
    """Fields an admin may change on any record. Email and password are not among them."""

    bio: Optional[str] = None
    program: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Status] = None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AccountService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        otp: OtpGenerator,
        mailer: EmailSender,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.otp = otp
        self.mailer = mailer

    # ------------------------------------------------------------------
    # Public flows
    # ------------------------------------------------------------------

    def sign_up(self, data: SignUpData) -> User:
        """Register a new account and email it a verification code.

        Checks run in a fixed order and the first failure wins. Nothing is
        written until every check has passed.
        """
        required = (data.personal_id, data.name, data.email, data.password, data.confirm_password)
        if not all(required):
            raise ValidationError(MSG_MISSING_FIELDS)
        name = data.name.strip()
        email = data.email.strip()
        if not validators.is_valid_name(name):
            raise ValidationError(MSG_NAME_TOO_SHORT)
        if not validators.passwords_match(data.password, data.confirm_password):
            raise ValidationError(MSG_PASSWORD_MISMATCH)
        if not validators.is_valid_email(email):
            raise ValidationError(MSG_INVALID_EMAIL)
        if not validators.is_strong_password(data.password):
            raise ValidationError(MSG_WEAK_PASSWORD)
        if self.store.get_by_email(email) is not None:
            raise ConflictError(MSG_EMAIL_TAKEN, code="email_taken")

        challenge = self.otp.generate()
        user = self.store.create_user(
            User(
                external_id=data.personal_id,
                name=name,
                email=email,
                password_hash=self.hasher.hash(data.password),
                address=data.address or "",
                phone=data.phone_number or "",
                role=Role.USER,
                avatar_url=default_avatar_url(),
                otp=challenge.code,
                otp_expires_at=to_iso(challenge.expires_at),
            )
        )
        logger.info("Registered user %s", user.id)

        try:
            self.mailer.send_otp(user.email, challenge.code)
        except MailDeliveryError:
            logger.exception("OTP email for user %s failed; registration kept", user.id)
        return user

    def sign_in(self, email: Optional[str], password: Optional[str]) -> tuple[User, str]:
        """Check credentials and return (user, refresh_token)."""
        if not email or not password:
            raise ValidationError(MSG_MISSING_FIELDS)
        user = self.store.get_by_email(email.strip())
        if user is None or not user.password_hash:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.verify_dummy(password)
            raise ValidationError(MSG_BAD_CREDENTIALS, code="bad_credentials")
        if not self.hasher.verify(password, user.password_hash) or not user.is_active:
            logger.warning("Failed sign-in for user %s", user.id)
            raise ValidationError(MSG_BAD_CREDENTIALS, code="bad_credentials")
        return user, self.tokens.issue_refresh_token(user)

    def verify_email(self, email: Optional[str], otp: Optional[str]) -> User:
        if not email or not otp:
            raise ValidationError(MSG_MISSING_OTP)
        user = self.store.get_by_pending_otp(email.strip(), otp.strip(), now=datetime.now(timezone.utc))
        if user is None:
            raise ValidationError(MSG_BAD_OTP, code="invalid_otp")
        verified = self.store.update_user(user.id, is_verified=True, otp=None, otp_expires_at=None)
        if verified is None:
            # Deleted between lookup and update.
            raise ValidationError(MSG_BAD_OTP, code="invalid_otp")
        logger.info("Verified email for user %s", user.id)
        return verified

    def resend_otp(self, email: Optional[str]) -> None:
        """Replace the pending code of an unverified account and email it."""
        if not email:
            raise ValidationError(MSG_MISSING_FIELDS)
        user = self.store.get_by_email(email.strip())
        if user is None or user.is_verified:
            raise ValidationError(MSG_RESEND_REJECTED)
        challenge = self.otp.generate()
        self.store.update_user(user.id, otp=challenge.code, otp_expires_at=to_iso(challenge.expires_at))
        self.mailer.send_otp(user.email, challenge.code)

    def refresh_access_token(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise MissingTokenError("Access denied. No token provided.")
        claims = self.tokens.verify_refresh_token(refresh_token)
        user = self.store.get_by_id(claims["sub"], include_password=False)
        if user is None or not user.is_active:
            raise InvalidTokenError("Invalid token.")
        return self.tokens.issue_access_token(user)

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> User:
        user = self.store.get_by_id(user_id, include_password=False)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User:
        current = self.get_profile(user_id)
        fields = _profile_fields(update, current)
        if not fields:
            return current
        updated = self.store.update_user(user_id, **fields)
        if updated is None:
            raise NotFoundError("User not found")
        return updated

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        return self.store.list_users()

    def admin_update_user(self, user_id: str, update: AdminUserUpdate) -> User:
        current = self.store.get_by_id(user_id, include_password=False)
        if current is None:
            raise NotFoundError("User not found")
        fields = _profile_fields(update, current)
        if update.bio is not None:
            if len(update.bio) > validators.BIO_MAX_LENGTH:
                raise ValidationError(MSG_BIO_TOO_LONG)
            fields["bio"] = update.bio
        if update.program is not None:
            fields["program"] = update.program
        if update.avatar_url:
            fields["avatar_url"] = update.avatar_url
        if update.role is not None:
            fields["role"] = update.role
        if update.status is not None:
            fields["status"] = update.status
        if not fields:
            return current

        updated = self.store.update_user(user_id, **fields)
        if updated is None:
            raise NotFoundError("User not found")
        logger.info("Admin updated user %s (%s)", user_id, ", ".join(sorted(fields)))
        return updated

    def delete_user(self, user_id: str) -> None:
        """Remove a user. Unknown ids are not an error."""
        if self.store.delete_user(user_id):
            logger.info("Deleted user %s", user_id)
        else:
            logger.info("Delete requested for unknown user %s", user_id)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _profile_fields(update: ProfileUpdate, current: User) -> dict:
    """Collect the supplied self-service fields from an update.

    None means "not supplied". An empty address or phone clears the stored
    value; name must still pass the length rule. social_links is merged into
    the stored mapping, so sending one platform leaves the others alone.
    """
    fields: dict = {}
    if update.name is not None:
        name = update.name.strip()
        if not validators.is_valid_name(name):
            raise ValidationError(MSG_NAME_TOO_SHORT)
        fields["name"] = name
    if update.address is not None:
        fields["address"] = update.address
    if update.phone is not None:
        fields["phone"] = update.phone
    if update.social_links:
        unknown = set(update.social_links) - set(SOCIAL_PLATFORMS)
        if unknown:
            raise ValidationError(f"Unknown social platforms: {', '.join(sorted(unknown))}")
        fields["social_links"] = {**current.social_links, **update.social_links}
    return fields
