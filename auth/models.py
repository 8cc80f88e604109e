"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, no I/O). The store maps rows to
these objects; the service and routes do the work.

Layer rule: no imports from api/ or mail/.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum

# Default avatar catalog. Tuples, not lists: the catalog is configuration and
# must not be mutated at runtime.
AVATAR_STYLES: tuple[str, ...] = ("notionists-neutral", "adventurer-neutral", "fun-emoji")
AVATAR_SEEDS: tuple[str, ...] = (
    "Garfield",
    "Tinkerbell",
    "Annie",
    "Loki",
    "Cleo",
    "Angel",
    "Bob",
    "Mia",
    "Coco",
    "Gracie",
    "Bear",
    "Bella",
    "Abby",
    "Harley",
    "Cali",
    "Leo",
    "Luna",
    "Jack",
    "Felix",
    "Kiki",
)
_AVATAR_URL = "https://api.dicebear.com/6.x/{style}/svg?seed={seed}"

SOCIAL_PLATFORMS: tuple[str, ...] = ("youtube", "instagram", "facebook", "twitter", "github", "website")


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Status(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def default_avatar_url() -> str:
    """Pick a random style/seed pair from the catalog."""
    return _AVATAR_URL.format(style=random.choice(AVATAR_STYLES), seed=random.choice(AVATAR_SEEDS))


def empty_social_links() -> dict[str, str]:
    return {platform: "" for platform in SOCIAL_PLATFORMS}


@dataclass
class User:
    """A registered account.

    password_hash is None only when the record was loaded with the hash
    projected out (UserStore.get_by_id(include_password=False), list_users()).
    It is never None for a record being created.

    otp / otp_expires_at describe a pending email verification. Both are set
    together at sign-up (and on resend) and cleared together on success.
    otp_expires_at is an ISO 8601 UTC timestamp.

    id and created_at are assigned by the store on insert.
    """

    external_id: str
    name: str
    email: str
    password_hash: str | None = None
    id: str | None = None
    address: str = ""
    phone: str = ""
    bio: str = ""
    program: str = ""
    role: Role = Role.USER
    avatar_url: str = field(default_factory=default_avatar_url)
    status: Status = Status.ACTIVE
    social_links: dict[str, str] = field(default_factory=empty_social_links)
    otp: str | None = None
    otp_expires_at: str | None = None
    is_verified: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE
