"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user is
the mapper. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  update_user() only accepts whitelisted column names, so a request payload can
  never reach id, email, password_hash or created_at through a generic update.

Timestamps are stored as fixed-width ISO 8601 UTC strings (microsecond
precision, "+00:00" suffix) so string comparison in SQL orders them correctly.
get_by_pending_otp() relies on that.

Each public method runs exactly one statement on its own connection, which is
the single-record atomicity the service needs. SQLite runs in WAL mode.

Layer rule: no imports from api/ or mail/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Role, Status, User, empty_social_links
from core.errors import ConflictError, InternalError

logger = logging.getLogger("accounts.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("external_id", String(255), nullable=False, index=True),
    Column("name", String(255), nullable=False, index=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("address", Text, nullable=False, server_default=""),
    Column("phone", String(64), nullable=False, server_default=""),
    Column("bio", String(250), nullable=False, server_default=""),
    Column("program", String(255), nullable=False, server_default=""),
    Column("role", String(16), nullable=False, server_default=Role.USER.value, index=True),
    Column("avatar_url", Text, nullable=False),
    Column("status", String(16), nullable=False, server_default=Status.ACTIVE.value, index=True),
    Column("social_links", JSON, nullable=False),
    Column("otp", String(6)),
    Column("otp_expires_at", String(32)),
    Column("is_verified", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns reachable through update_user(). email and password_hash are
# deliberately absent.
_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "address",
        "phone",
        "bio",
        "program",
        "role",
        "avatar_url",
        "status",
        "social_links",
        "otp",
        "otp_expires_at",
        "is_verified",
    }
)

# Every column except the credential hash.
_PUBLIC_COLUMNS = [c for c in _users.c if c.name != "password_hash"]


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///accounts.db")
        created = store.create_user(User(external_id="2702342742", name="Ann", email="ann@example.com",
                                         password_hash=hasher.hash("Password123")))
        user = store.get_by_email("ann@example.com")
        store.close()
    """

    def __init__(self, db_url: str = "sqlite:///accounts.db") -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored record.

        Raises ConflictError if the email is already registered. The UNIQUE
        constraint is the authority; the service also pre-checks so the
        common case gets a clean message without relying on the exception.
        """
        if not user.password_hash:
            raise ValueError("password_hash must be set before a user is persisted")
        stamp = now_iso()
        user_id = uuid.uuid4().hex
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        external_id=user.external_id,
                        name=user.name,
                        email=user.email,
                        password_hash=user.password_hash,
                        address=user.address,
                        phone=user.phone,
                        bio=user.bio,
                        program=user.program,
                        role=Role(user.role).value,
                        avatar_url=user.avatar_url,
                        status=Status(user.status).value,
                        social_links={**empty_social_links(), **user.social_links},
                        otp=user.otp,
                        otp_expires_at=user.otp_expires_at,
                        is_verified=user.is_verified,
                        created_at=stamp,
                        updated_at=stamp,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise ConflictError("This email is already registered", code="email_taken") from exc
        logger.info("Created user %s", user_id)
        created = self.get_by_id(user_id)
        if created is None:
            raise InternalError(f"User {user_id} vanished after insert")
        return created

    def update_user(self, user_id: str, **fields) -> User | None:
        """Apply a partial update. Only the supplied fields change.

        Unknown field names raise ValueError rather than being silently
        dropped. Returns the updated record (without password hash), or None
        if user_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)!r}")
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        if "status" in fields:
            fields["status"] = Status(fields["status"]).value
        fields["updated_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id, include_password=False)

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if a row was removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str, include_password: bool = True) -> User | None:
        columns = list(_users.c) if include_password else _PUBLIC_COLUMNS
        with self.engine.connect() as conn:
            row = conn.execute(select(*columns).where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_pending_otp(self, email: str, otp: str, now: datetime) -> User | None:
        """Return the user whose pending code matches and has not expired.

        Expiry is strict: a code is valid only before otp_expires_at.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                select(*_PUBLIC_COLUMNS).where(
                    (_users.c.email == email) & (_users.c.otp == otp) & (_users.c.otp_expires_at > to_iso(now))
                )
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users, oldest first, with the password hash projected out."""
        with self.engine.connect() as conn:
            rows = conn.execute(select(*_PUBLIC_COLUMNS).order_by(_users.c.created_at)).fetchall()
        return [_row_to_user(r) for r in rows]

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # password_hash is absent from projected rows; getattr covers both shapes.
    return User(
        id=row.id,
        external_id=row.external_id,
        name=row.name,
        email=row.email,
        password_hash=getattr(row, "password_hash", None),
        address=row.address,
        phone=row.phone,
        bio=row.bio,
        program=row.program,
        role=Role(row.role),
        avatar_url=row.avatar_url,
        status=Status(row.status),
        social_links={**empty_social_links(), **(row.social_links or {})},
        otp=row.otp,
        otp_expires_at=row.otp_expires_at,
        is_verified=bool(row.is_verified),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
