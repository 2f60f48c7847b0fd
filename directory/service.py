"""
directory/service.py -- User directory operations.

UserDirectory wraps a UserStore and enforces the resource-level rules that sit
on top of the coarse role gate in auth/dependencies.py:

  register      public; validates, persists, returns a token for the new user
  create_user   admin; same validation, returns the record, issues no token
  seed_user     trusted local callers (the CLI); like create_user without an actor
  authenticate  public; uniform failure for unknown email and wrong password
  get_user      admin, or the caller reading their own record
  get_profile   the caller's own record
  update_user   admin; partial update, falsy values leave fields unchanged
  delete_user   admin; a missing id is NotFound, never a silent success
  list_users    admin; fixed page size, insertion order

Validation and authorization always run before the first mutating store call.
Store exceptions never leave this module raw: a UNIQUE violation on email
becomes ConflictError, anything else is logged and re-raised as
InternalError.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import TokenClaims, User
from auth.store import UserStore, is_valid_user_id
from auth.tokens import authenticate_user, hash_password, issue_token
from core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from directory.validation import NewUser, validate_changes, validate_new_user

logger = logging.getLogger("userdirectory.directory")

PAGE_SIZE = 10
_PAGE_PATTERN = re.compile(r"\s*[+-]?\d+")

EMAIL_IN_USE_MESSAGE = "Email is already in use. Please login instead."
EMAIL_EXISTS_MESSAGE = "Email already exists"
BAD_CREDENTIALS_MESSAGE = "Invalid credentials"
INTERNAL_MESSAGE = "Internal server error. Please try again later."


@dataclass(frozen=True)
class Registration:
    user: User
    token: str


@dataclass(frozen=True)
class UserPage:
    """One page of the user listing plus the total for client-side pagination."""

    users: list[User]
    total: int
    page: int
    page_size: int = PAGE_SIZE


def parse_page(raw: Any) -> int:
    """Coerce a page query value to a 1-indexed page number.

    The leading integer is used, so "2abc" and "2.5" mean page 2. Missing,
    non-numeric and values below 1 all mean page 1.
    """
    if raw is None:
        return 1
    match = _PAGE_PATTERN.match(str(raw))
    if match is None:
        return 1
    try:
        page = int(match.group(0))
    except ValueError:  # beyond int() digit limit
        return 1
    return page if page >= 1 else 1


@contextmanager
def _store_errors(action: str, conflict_message: str = EMAIL_EXISTS_MESSAGE) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        logger.info("Integrity violation during %s: %s", action, exc.orig)
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        logger.exception("Store failure during %s", action)
        raise InternalError(INTERNAL_MESSAGE) from exc


class UserDirectory:
    """CRUD over the user store with validation and access rules applied.

    Usage:
        directory = UserDirectory(store)
        registration = directory.register("Al", "a@b.co", "secret1", "user", "active")
        token = directory.authenticate("a@b.co", "secret1")
    """

    def __init__(
        self,
        store: UserStore,
        *,
        default_profile_photo: str = "",
        self_registration_enabled: bool = True,
    ) -> None:
        self.store = store
        self.default_profile_photo = default_profile_photo
        self.self_registration_enabled = self_registration_enabled

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def register(self, name: Any, email: Any, password: Any, role: Any, status: Any) -> Registration:
        """Create an account and return it with a token for the new identity."""
        if not self.self_registration_enabled:
            raise AuthorizationError("Self-registration is disabled.")
        new_user = validate_new_user(name, email, password, role, status)
        user = self._insert(new_user, conflict_message=EMAIL_IN_USE_MESSAGE)
        token = issue_token(TokenClaims(id=user.id, role=user.role))
        logger.info("Registered user %s (role=%s)", user.id, user.role.value)
        return Registration(user=user, token=token)

    def authenticate(self, email: Any, password: Any) -> str:
        """Return a token for valid credentials.

        Unknown email and wrong password raise the same AuthenticationError so
        callers cannot enumerate registered addresses.
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE, code="bad_credentials")
        with _store_errors("login"):
            user = authenticate_user(self.store, email, password)
        if user is None:
            logger.info("Failed login attempt")
            raise AuthenticationError(BAD_CREDENTIALS_MESSAGE, code="bad_credentials")
        return issue_token(TokenClaims(id=user.id, role=user.role))

    # ------------------------------------------------------------------
    # Authenticated operations
    # ------------------------------------------------------------------

    def create_user(self, actor: TokenClaims, name: Any, email: Any, password: Any, role: Any, status: Any) -> User:
        """Admin-create an account. No token is issued for the creator."""
        self._require_admin(actor)
        new_user = validate_new_user(name, email, password, role, status)
        user = self._insert(new_user, conflict_message=EMAIL_EXISTS_MESSAGE)
        logger.info("Admin %s created user %s", actor.id, user.id)
        return user

    def seed_user(self, name: Any, email: Any, password: Any, role: Any, status: Any) -> User:
        """Create an account from a trusted local caller.

        Runs the creation rules and duplicate-email check but needs no actor
        and ignores the self-registration switch, so it can create the first
        admin. No token is issued.
        """
        new_user = validate_new_user(name, email, password, role, status)
        user = self._insert(new_user, conflict_message=EMAIL_EXISTS_MESSAGE)
        logger.info("Seeded user %s (role=%s)", user.id, user.role.value)
        return user

    def get_user(self, actor: TokenClaims, user_id: str) -> User:
        """Return a user record. Admins read anyone; other callers only themselves."""
        user_id = self._check_id(user_id)
        if not actor.is_admin and actor.id != user_id:
            raise AuthorizationError("Forbidden: Not your profile")
        return self._fetch(user_id)

    def get_profile(self, actor: TokenClaims) -> User:
        return self._fetch(actor.id)

    def update_user(
        self,
        actor: TokenClaims,
        user_id: str,
        *,
        name: Any = None,
        email: Any = None,
        role: Any = None,
        status: Any = None,
    ) -> User:
        """Overwrite the provided fields of a user. Admin only.

        Falsy values mean "no change", so an empty string never clears a field.
        """
        user_id = self._check_id(user_id)
        self._require_admin(actor)
        current = self._fetch(user_id)
        changes = validate_changes(name=name, email=email, role=role, status=status)
        if "email" in changes and changes["email"] != current.email:
            with _store_errors("update"):
                owner = self.store.get_by_email(changes["email"])
            if owner is not None and owner.id != user_id:
                raise ConflictError(EMAIL_EXISTS_MESSAGE)
        if not changes:
            return current

        with _store_errors("update"):
            updated = self.store.update_user(user_id, **changes)
        if not updated:
            raise NotFoundError("User not found")
        logger.info("Admin %s updated user %s (%s)", actor.id, user_id, ", ".join(sorted(changes)))
        return self._fetch(user_id)

    def delete_user(self, actor: TokenClaims, user_id: str) -> None:
        """Remove a user. Admin only. A missing id raises NotFoundError."""
        user_id = self._check_id(user_id)
        self._require_admin(actor)
        with _store_errors("delete"):
            deleted = self.store.delete_user(user_id)
        if not deleted:
            raise NotFoundError("User not found")
        logger.info("Admin %s deleted user %s", actor.id, user_id)

    def list_users(self, actor: TokenClaims, page: Any = 1) -> UserPage:
        """Return one fixed-size page of users plus the total count. Admin only."""
        self._require_admin(actor)
        page_number = parse_page(page)
        offset = (page_number - 1) * PAGE_SIZE
        with _store_errors("list"):
            total = self.store.count_users()
            # Past the last row the slice is empty; huge offsets must not
            # reach the driver.
            if offset >= total:
                return UserPage(users=[], total=total, page=page_number)
            users = self.store.list_users(offset=offset, limit=PAGE_SIZE)
        return UserPage(users=users, total=total, page=page_number)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert(self, new_user: NewUser, conflict_message: str) -> User:
        with _store_errors("create", conflict_message):
            if self.store.get_by_email(new_user.email) is not None:
                raise ConflictError(conflict_message)
            user_id = self.store.create_user(
                User(
                    name=new_user.name,
                    email=new_user.email,
                    password_digest=hash_password(new_user.password),
                    role=new_user.role,
                    status=new_user.status,
                    profile_photo=self.default_profile_photo,
                )
            )
            created = self.store.get_by_id(user_id)
        if created is None:
            logger.error("User %s missing immediately after insert", user_id)
            raise InternalError(INTERNAL_MESSAGE)
        return created

    def _fetch(self, user_id: str) -> User:
        with _store_errors("read"):
            user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _check_id(user_id: str) -> str:
        if not is_valid_user_id(user_id):
            raise ValidationError("Invalid user ID")
        return user_id.lower()

    @staticmethod
    def _require_admin(actor: TokenClaims) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Forbidden: Admins only")
