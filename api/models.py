"""
API request and response models for the account service.

These Pydantic v2 models define the HTTP transport contract. They are separate
from the dataclasses in auth/models.py, which own the internal representation.
Route handlers map between the two.

Request bodies declare every field Optional on purpose: presence and format
checks live in AccountService so the caller gets the same ordered, human-readable
messages whatever the client sends. Unknown keys (email or password on an update
body, for example) are ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Role, Status, User
from auth.service import AdminUserUpdate, ProfileUpdate, SignUpData

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    """Request body for POST /signup."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    personal_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")
    address: Optional[str] = None
    phone_number: Optional[str] = None

    def to_domain(self) -> SignUpData:
        return SignUpData(**self.model_dump())


class SignInRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None


class VerifyRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    otp: Optional[str] = None


class ResendOtpRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    """Request body for PATCH /user-infor. Email and password are not accepted.

    An omitted field is left alone; an empty string clears address or phone.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    name: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    social_links: Optional[dict[str, str]] = None

    def to_domain(self) -> ProfileUpdate:
        return ProfileUpdate(
            name=self.name,
            address=self.address,
            phone=self.phone_number,
            social_links=self.social_links,
        )


class AdminUserUpdateRequest(ProfileUpdateRequest):
    """Request body for PUT /admin/users/{id}. Email and password are still not accepted."""

    bio: Optional[str] = None
    program: Optional[str] = None
    avatar: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Status] = None

    def to_domain(self) -> AdminUserUpdate:
        return AdminUserUpdate(
            name=self.name,
            address=self.address,
            phone=self.phone_number,
            social_links=self.social_links,
            bio=self.bio,
            program=self.program,
            avatar_url=self.avatar,
            role=self.role,
            status=self.status,
        )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None


class UserResponse(BaseModel):
    """Public view of a user record. Never carries the password hash or pending OTP."""

    model_config = ConfigDict(frozen=True)

    id: str
    personal_id: str
    name: str
    email: str
    address: str
    phone: str
    bio: str
    program: str
    role: Role
    avatar: str
    status: Status
    social_links: dict[str, str]
    is_verified: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            personal_id=user.external_id,
            name=user.name,
            email=user.email,
            address=user.address,
            phone=user.phone,
            bio=user.bio,
            program=user.program,
            role=user.role,
            avatar=user.avatar_url,
            status=user.status,
            social_links=user.social_links,
            is_verified=user.is_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class SignUpResponse(BaseModel):
    message: str
    user: UserSummary


class SignInResponse(BaseModel):
    message: str
    user: UserSummary


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
