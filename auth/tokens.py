"""
auth/tokens.py -- Bearer tokens and password hashing.

Security design decisions:
  Tokens: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the TokenClaims (id, role) plus iat and exp. exp defaults to 24 hours
       after issuance. verify_token() returns None on any failure --
       malformed, tampered, expired or wrong-shape tokens are indistinguishable
       to the caller, so nothing leaks about which check failed.

  Passwords: bcrypt used directly (no passlib wrapper). The _DUMMY_HASH
       constant enables timing equalization in authenticate_user() so response
       time does not reveal whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(). See core/config.py
       for the dev/production key policy.

Layer rule: no imports from api/ or directory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import Role, TokenClaims
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("userdirectory.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------

BCRYPT_ROUNDS = 10


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes; longer inputs are truncated here
    so bcrypt 4.x does not reject them outright.
    """
    pw_bytes = plain.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    pw_bytes = plain.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. verify_password() always runs, even when the
# email is unknown.
_DUMMY_HASH: str = hash_password("userdirectory_timing_dummy")


# ---------------------------------------------------------------------------
# Token issue / verify
# ---------------------------------------------------------------------------


def issue_token(claims: TokenClaims, expires_in: timedelta | None = None) -> str:
    """Encode a signed token carrying the identity claims.

    Args:
        claims:     The identity to embed (id and role only).
        expires_in: Lifetime of the token. If None (default), uses
                    Settings.token_expire_seconds (24 hours).
    """
    if expires_in is None:
        expires_in = timedelta(seconds=_settings.token_expire_seconds)
    now = datetime.now(timezone.utc)
    payload = {
        "id": claims.id,
        "role": claims.role.value,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def verify_token(token: str) -> TokenClaims | None:
    """Decode and verify a token. Returns the claims or None on any failure.

    Returning None (rather than raising) keeps the caller simple: any invalid
    token is treated as unauthenticated. The access guard turns None into 401.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        return None
    try:
        role = Role(payload.get("role"))
    except ValueError:
        return None
    return TokenClaims(id=user_id, role=role)


def token_expires_in() -> int:
    """Lifetime in seconds of tokens issued with the default expiry."""
    return _settings.token_expire_seconds


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    User.status is not consulted -- inactive users can still log in.

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_digest):
        return None
    return user
