"""
auth/models.py -- Domain dataclasses and enums for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
directory service do the work; these types only own the domain shape.

Role and Status are closed str enums. Every validation and policy check
compares against enum members, never against free-form strings.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    admin = "admin"
    user = "user"


class Status(str, Enum):
    active = "active"
    inactive = "inactive"


@dataclass
class User:
    """A directory entry.

    id is None before the record is written to the store; the store assigns
    an opaque UUID hex string on insert and it never changes afterwards.

    email is always stored lowercased so uniqueness is case-insensitive.

    password_digest is the bcrypt hash. It never leaves the service layer --
    api/models.py has no field for it.

    status is informational only: inactive users can still log in.
    """

    name: str
    email: str
    password_digest: str
    role: Role = Role.user
    status: Status = Status.active
    profile_photo: str = ""
    id: str | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on insert and update


@dataclass(frozen=True)
class TokenClaims:
    """The identity embedded in a bearer token.

    The same structure is used at issuance and at verification, and is what
    the access guard attaches to request.state.identity.
    """

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin
