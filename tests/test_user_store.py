"""Unit tests for auth/store.py -- UserStore.

Covers:
- create_user assigns id/timestamps and enforces unique email (ConflictError)
- get_by_id projection drops the password hash; list_users never carries it
- update_user changes only supplied fields and refuses non-updatable columns
- get_by_pending_otp honours exact code and strict expiry
- delete_user is permanent
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auth.models import Role, Status, User
from auth.store import UserStore, to_iso
from core.errors import ConflictError, InternalError


def _user(email: str = "ann@example.com", **overrides) -> User:
    values = {
        "external_id": "2702342742",
        "name": "Ann Example",
        "email": email,
        "password_hash": "$2b$04$abcdefghijklmnopqrstuuS6sI6dN3c1b0DdPq0l0m0Yt3H0z9e0K",
    }
    values.update(overrides)
    return User(**values)


class TestCreate:
    def test_assigns_identity_and_timestamps(self, store: UserStore) -> None:
        created = store.create_user(_user())
        assert created.id and len(created.id) == 32
        assert created.created_at
        assert created.created_at == created.updated_at
        assert created.role == Role.USER
        assert created.status == Status.ACTIVE
        assert created.is_verified is False
        assert created.avatar_url.startswith("https://api.dicebear.com/6.x/")
        assert set(created.social_links) == {"youtube", "instagram", "facebook", "twitter", "github", "website"}

    def test_duplicate_email_conflicts(self, store: UserStore) -> None:
        store.create_user(_user())
        with pytest.raises(ConflictError):
            store.create_user(_user(name="Someone Else", external_id="1"))
        assert store.count_users() == 1

    def test_requires_password_hash(self, store: UserStore) -> None:
        with pytest.raises(ValueError):
            store.create_user(_user(password_hash=None))

    def test_missing_row_after_insert_raises(self, store: UserStore, monkeypatch) -> None:
        monkeypatch.setattr(store, "get_by_id", lambda user_id, include_password=True: None)
        with pytest.raises(InternalError):
            store.create_user(_user())


class TestReads:
    def test_get_by_id_projection(self, store: UserStore) -> None:
        created = store.create_user(_user())
        assert store.get_by_id(created.id).password_hash is not None
        assert store.get_by_id(created.id, include_password=False).password_hash is None

    def test_get_by_email(self, store: UserStore) -> None:
        created = store.create_user(_user())
        assert store.get_by_email("ann@example.com").id == created.id
        assert store.get_by_email("nobody@example.com") is None

    def test_list_users_excludes_password_hash(self, store: UserStore) -> None:
        store.create_user(_user("a@example.com"))
        store.create_user(_user("b@example.com"))
        users = store.list_users()
        assert [u.email for u in users] == ["a@example.com", "b@example.com"]
        assert all(u.password_hash is None for u in users)


class TestUpdate:
    def test_partial_update(self, store: UserStore) -> None:
        created = store.create_user(_user(address="Jakarta", phone="0859"))
        updated = store.update_user(created.id, address="Bandung")
        assert updated.address == "Bandung"
        assert updated.phone == "0859"
        assert updated.name == "Ann Example"
        assert updated.updated_at >= created.updated_at

    def test_role_and_status(self, store: UserStore) -> None:
        created = store.create_user(_user())
        updated = store.update_user(created.id, role=Role.ADMIN, status=Status.INACTIVE)
        assert updated.is_admin
        assert not updated.is_active

    @pytest.mark.parametrize("field", ["email", "password_hash", "id", "created_at"])
    def test_protected_columns_refused(self, store: UserStore, field: str) -> None:
        created = store.create_user(_user())
        with pytest.raises(ValueError):
            store.update_user(created.id, **{field: "x"})

    def test_unknown_id_returns_none(self, store: UserStore) -> None:
        assert store.update_user("0" * 32, name="Nobody") is None


class TestPendingOtp:
    def test_match_requires_exact_code_and_future_expiry(self, store: UserStore) -> None:
        now = datetime.now(timezone.utc)
        created = store.create_user(_user(otp="123456", otp_expires_at=to_iso(now + timedelta(minutes=10))))

        assert store.get_by_pending_otp("ann@example.com", "123456", now).id == created.id
        assert store.get_by_pending_otp("ann@example.com", "654321", now) is None
        assert store.get_by_pending_otp("other@example.com", "123456", now) is None
        assert store.get_by_pending_otp("ann@example.com", "123456", now + timedelta(minutes=11)) is None

    def test_expiry_instant_itself_is_invalid(self, store: UserStore) -> None:
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        store.create_user(_user(otp="123456", otp_expires_at=to_iso(expires)))
        assert store.get_by_pending_otp("ann@example.com", "123456", expires) is None
        assert store.get_by_pending_otp("ann@example.com", "123456", expires - timedelta(microseconds=1)) is not None


def test_delete_is_permanent(store: UserStore) -> None:
    created = store.create_user(_user())
    assert store.delete_user(created.id) is True
    assert store.get_by_id(created.id) is None
    assert store.delete_user(created.id) is False
