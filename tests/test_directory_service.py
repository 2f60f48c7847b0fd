"""Unit tests for directory/service.py and directory/validation.py.

Covers:
- field validation order (name -> email -> password -> role -> status) and messages
- normalization: trimmed name, lowercased email/role/status
- duplicate email (any case) -> ConflictError
- authenticate(): one generic error for unknown email and wrong password;
  inactive accounts can still log in
- get_user(): admin reads anyone, users read only themselves
- update_user(): partial, falsy values are no-ops, email conflicts
- delete_user(): second delete is NotFound
- list_users(): fixed page size, page coercion
- store failures surface as InternalError
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from auth.models import Role, Status, TokenClaims
from auth.tokens import verify_token
from core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from directory.service import PAGE_SIZE, UserDirectory, parse_page
from directory.validation import (
    EMAIL_MESSAGE,
    NAME_MESSAGE,
    PASSWORD_MESSAGE,
    ROLE_MESSAGE,
    STATUS_MESSAGE,
    validate_changes,
    validate_new_user,
)

VALID = {"name": "Al", "email": "a@b.co", "password": "secret1", "role": "user", "status": "active"}


@pytest.fixture
def directory(store) -> UserDirectory:
    return UserDirectory(store, default_profile_photo="/static/avatar.png")


@pytest.fixture
def admin_claims(admin) -> TokenClaims:
    return TokenClaims(id=admin.id, role=Role.admin)


@pytest.fixture
def member_claims(member) -> TokenClaims:
    return TokenClaims(id=member.id, role=Role.user)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"name": " A "}, NAME_MESSAGE),
            ({"name": None}, NAME_MESSAGE),
            ({"email": "not-an-email"}, EMAIL_MESSAGE),
            ({"email": "a@b.c"}, EMAIL_MESSAGE),
            ({"email": "a@b.co\n"}, EMAIL_MESSAGE),
            ({"password": "12345"}, PASSWORD_MESSAGE),
            ({"role": "root"}, ROLE_MESSAGE),
            ({"role": None}, ROLE_MESSAGE),
            ({"status": "banned"}, STATUS_MESSAGE),
        ],
    )
    def test_field_specific_message(self, overrides: dict, message: str) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_new_user(**{**VALID, **overrides})
        assert excinfo.value.message == message

    def test_first_failing_field_wins(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_new_user(name="", email="bad", password="1", role="x", status="y")
        assert excinfo.value.message == NAME_MESSAGE

        with pytest.raises(ValidationError) as excinfo:
            validate_new_user(name="Al", email="a@b.co", password="1", role="x", status="y")
        assert excinfo.value.message == PASSWORD_MESSAGE

    def test_normalizes_values(self) -> None:
        new_user = validate_new_user(name="  Ada  ", email="Ada@Example.COM", password="secret1", role="ADMIN", status="Inactive")
        assert new_user.name == "Ada"
        assert new_user.email == "ada@example.com"
        assert new_user.role is Role.admin
        assert new_user.status is Status.inactive

    def test_changes_drop_falsy_values(self) -> None:
        assert validate_changes(name="", email="", role=None, status="") == {}
        assert validate_changes(role="admin") == {"role": Role.admin}


# ---------------------------------------------------------------------------
# Register / create / authenticate
# ---------------------------------------------------------------------------


class TestRegister:
    def test_register_returns_user_and_token(self, directory) -> None:
        registration = directory.register(**VALID)
        user = registration.user
        assert user.email == "a@b.co"
        assert user.profile_photo == "/static/avatar.png"
        assert user.password_digest != "secret1"
        assert verify_token(registration.token) == TokenClaims(id=user.id, role=Role.user)

    def test_duplicate_email_is_conflict_regardless_of_case(self, directory) -> None:
        directory.register(**VALID)
        with pytest.raises(ConflictError) as excinfo:
            directory.register(name="Other", email="A@B.CO", password="different", role="admin", status="inactive")
        assert excinfo.value.status_code == 400

    def test_disabled_self_registration(self, store) -> None:
        closed = UserDirectory(store, self_registration_enabled=False)
        with pytest.raises(AuthorizationError):
            closed.register(**VALID)
        assert store.count_users() == 0

    def test_admin_create_requires_admin(self, directory, member_claims) -> None:
        with pytest.raises(AuthorizationError):
            directory.create_user(member_claims, **VALID)

    def test_admin_create_returns_record(self, directory, admin_claims) -> None:
        user = directory.create_user(admin_claims, **VALID)
        assert user.id
        assert directory.store.get_by_id(user.id) is not None

    def test_seed_user_needs_no_actor_or_open_registration(self, store) -> None:
        closed = UserDirectory(store, self_registration_enabled=False)
        user = closed.seed_user("Root", "root@example.com", "secret1", "admin", "active")
        assert user.role is Role.admin
        with pytest.raises(ConflictError):
            closed.seed_user("Again", "ROOT@example.com", "secret1", "user", "active")


class TestAuthenticate:
    def test_valid_credentials_issue_token(self, directory) -> None:
        user = directory.register(**VALID).user
        token = directory.authenticate("a@b.co", "secret1")
        assert verify_token(token) == TokenClaims(id=user.id, role=Role.user)

    def test_failures_are_indistinguishable(self, directory) -> None:
        directory.register(**VALID)
        with pytest.raises(AuthenticationError) as wrong_password:
            directory.authenticate("a@b.co", "wrong-password")
        with pytest.raises(AuthenticationError) as unknown_email:
            directory.authenticate("nobody@b.co", "secret1")
        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"
        assert wrong_password.value.code == unknown_email.value.code == "bad_credentials"

    def test_missing_fields_are_bad_credentials(self, directory) -> None:
        with pytest.raises(AuthenticationError):
            directory.authenticate(None, None)

    def test_inactive_user_can_still_log_in(self, directory) -> None:
        directory.register(**{**VALID, "status": "inactive"})
        assert verify_token(directory.authenticate("a@b.co", "secret1")) is not None


# ---------------------------------------------------------------------------
# Read / update / delete
# ---------------------------------------------------------------------------


class TestGetUser:
    def test_self_access_for_regular_user(self, directory, member, member_claims) -> None:
        assert directory.get_user(member_claims, member.id).email == member.email

    def test_regular_user_cannot_read_others(self, directory, admin, member_claims) -> None:
        with pytest.raises(AuthorizationError):
            directory.get_user(member_claims, admin.id)

    def test_admin_reads_anyone(self, directory, member, admin_claims) -> None:
        assert directory.get_user(admin_claims, member.id).id == member.id

    def test_malformed_id(self, directory, admin_claims) -> None:
        with pytest.raises(ValidationError):
            directory.get_user(admin_claims, "not-an-id")

    def test_missing_user(self, directory, admin_claims) -> None:
        with pytest.raises(NotFoundError):
            directory.get_user(admin_claims, "0" * 32)

    def test_uppercase_id_is_accepted(self, directory, member, admin_claims) -> None:
        assert directory.get_user(admin_claims, member.id.upper()).id == member.id


class TestUpdateUser:
    def test_partial_update(self, directory, member, admin_claims) -> None:
        user = directory.update_user(admin_claims, member.id, role="admin", status="inactive")
        assert user.role is Role.admin
        assert user.status is Status.inactive
        assert user.name == "Member"
        assert user.email == member.email

    def test_empty_email_leaves_email_unchanged(self, directory, member, admin_claims) -> None:
        user = directory.update_user(admin_claims, member.id, email="")
        assert user.email == member.email

    def test_invalid_value_rejected(self, directory, member, admin_claims) -> None:
        with pytest.raises(ValidationError):
            directory.update_user(admin_claims, member.id, role="owner")

    def test_email_taken_by_other_user(self, directory, admin, member, admin_claims) -> None:
        with pytest.raises(ConflictError):
            directory.update_user(admin_claims, member.id, email=admin.email.upper())

    def test_regular_user_cannot_update(self, directory, member, member_claims) -> None:
        with pytest.raises(AuthorizationError):
            directory.update_user(member_claims, member.id, name="Self Promoted")

    def test_missing_user(self, directory, admin_claims) -> None:
        with pytest.raises(NotFoundError):
            directory.update_user(admin_claims, "0" * 32, name="Ghost")


class TestDeleteUser:
    def test_delete_twice(self, directory, member, admin_claims) -> None:
        directory.delete_user(admin_claims, member.id)
        with pytest.raises(NotFoundError):
            directory.delete_user(admin_claims, member.id)

    def test_regular_user_cannot_delete(self, directory, admin, member_claims) -> None:
        with pytest.raises(AuthorizationError):
            directory.delete_user(member_claims, admin.id)
        assert directory.store.get_by_id(admin.id) is not None


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestListUsers:
    def test_second_page_of_fifteen(self, directory, admin_claims) -> None:
        # admin fixture is user 1; add 14 more
        created = [directory.create_user(admin_claims, f"User {i}", f"user{i}@example.com", "secret1", "user", "active") for i in range(14)]

        page = directory.list_users(admin_claims, "2")

        assert page.total == 15
        assert page.page == 2
        assert page.page_size == PAGE_SIZE
        assert [u.id for u in page.users] == [u.id for u in created[9:]]

    def test_regular_user_cannot_list(self, directory, member_claims) -> None:
        with pytest.raises(AuthorizationError):
            directory.list_users(member_claims)

    def test_page_past_the_end_skips_the_query(self, admin_claims) -> None:
        store = MagicMock()
        store.count_users.return_value = 3
        page = UserDirectory(store).list_users(admin_claims, str(10**30))
        assert page.users == []
        assert page.total == 3
        store.list_users.assert_not_called()

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("4", 4), (2, 2), ("2abc", 2), ("2.5", 2), (" 3", 3)],
    )
    def test_parse_page(self, raw, expected: int) -> None:
        assert parse_page(raw) == expected


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------


class TestStoreFailures:
    def test_store_error_becomes_internal_error(self, admin_claims) -> None:
        store = MagicMock()
        store.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        directory = UserDirectory(store)
        with pytest.raises(InternalError) as excinfo:
            directory.get_user(admin_claims, "a" * 32)
        assert "database is locked" not in excinfo.value.message

    def test_failure_before_insert_prevents_write(self) -> None:
        store = MagicMock()
        store.get_by_email.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
        directory = UserDirectory(store)
        with pytest.raises(InternalError):
            directory.register(**VALID)
        store.create_user.assert_not_called()
