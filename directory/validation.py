"""
directory/validation.py -- Field rules for user records.

Rules are checked one field at a time and the first failure wins, so clients
get exactly one field-specific message. Creation checks, in order:
name -> email -> password -> role -> status.

Updates reuse the same per-field rules, but a falsy value (None or "") means
"leave the stored value alone" and is never validated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from auth.models import Role, Status
from core.errors import ValidationError

NAME_MIN_LEN = 2
PASSWORD_MIN_LEN = 6

EMAIL_PATTERN = re.compile(r"[\w\-.]+@([\w-]+\.)+[\w-]{2,4}", re.IGNORECASE | re.ASCII)

NAME_MESSAGE = "Name must be at least 2 characters long."
EMAIL_MESSAGE = "A valid email is required."
PASSWORD_MESSAGE = "Password must be at least 6 characters long."
ROLE_MESSAGE = 'Role must be either "admin" or "user".'
STATUS_MESSAGE = 'Status must be either "active" or "inactive".'


@dataclass(frozen=True)
class NewUser:
    """Validated, normalized input for a user that does not exist yet."""

    name: str
    email: str
    password: str
    role: Role
    status: Status


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def clean_name(value: Any) -> str:
    name = _text(value).strip()
    if len(name) < NAME_MIN_LEN:
        raise ValidationError(NAME_MESSAGE)
    return name


def clean_email(value: Any) -> str:
    email = _text(value)
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError(EMAIL_MESSAGE)
    return email.lower()


def clean_password(value: Any) -> str:
    password = _text(value)
    if len(password) < PASSWORD_MIN_LEN:
        raise ValidationError(PASSWORD_MESSAGE)
    return password


def clean_role(value: Any) -> Role:
    try:
        return Role(_text(value).lower())
    except ValueError:
        raise ValidationError(ROLE_MESSAGE) from None


def clean_status(value: Any) -> Status:
    try:
        return Status(_text(value).lower())
    except ValueError:
        raise ValidationError(STATUS_MESSAGE) from None


def validate_new_user(name: Any, email: Any, password: Any, role: Any, status: Any) -> NewUser:
    """Validate registration/admin-create input. Raises ValidationError on the first bad field."""
    return NewUser(
        name=clean_name(name),
        email=clean_email(email),
        password=clean_password(password),
        role=clean_role(role),
        status=clean_status(status),
    )


def validate_changes(name: Any = None, email: Any = None, role: Any = None, status: Any = None) -> dict[str, Any]:
    """Return the normalized fields of a partial update.

    Falsy values are dropped: `{"email": ""}` produces no email change.
    """
    changes: dict[str, Any] = {}
    if name:
        changes["name"] = clean_name(name)
    if email:
        changes["email"] = clean_email(email)
    if role:
        changes["role"] = clean_role(role)
    if status:
        changes["status"] = clean_status(status)
    return changes
