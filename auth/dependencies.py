"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The access guard reads `Authorization: Bearer <token>`, verifies it, checks
the caller's role against an allow-set and attaches the decoded identity to
request.state.identity before the wrapped route runs:

  1. No bearer token                 -> 401 "Unauthorized"
  2. Token fails verification        -> 401 "Invalid token"
  3. Role not in a non-empty allow-set -> 403
  4. Otherwise the TokenClaims are returned to the route

require_roles() builds a guard for any allow-set. get_current_identity
(any authenticated caller) and require_admin are the prebuilt instances.

The guard trusts the token alone and does not look the user up in the store:
a token stays valid for its full lifetime even if the user is deleted.

Layer rule: no imports from api/ or directory/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.models import Role, TokenClaims
from auth.tokens import verify_token
from core.errors import AuthenticationError, AuthorizationError

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_bearer_token(request: Request) -> str | None:
    """Return the token from `Authorization: Bearer <token>`, or None."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def require_roles(*allowed_roles: Role) -> Callable[[Request], TokenClaims]:
    """Build a dependency that admits callers whose role is in allowed_roles.

    With no roles, any authenticated identity is admitted.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: TokenClaims = Depends(require_roles(Role.admin))): ...
    """
    allowed = frozenset(allowed_roles)

    def guard(request: Request) -> TokenClaims:
        token = get_bearer_token(request)
        if token is None:
            raise AuthenticationError("Unauthorized", headers=_CHALLENGE)

        claims = verify_token(token)
        if claims is None:
            raise AuthenticationError("Invalid token", headers=_CHALLENGE)

        if allowed and claims.role not in allowed:
            raise AuthorizationError("Forbidden: Insufficient privileges")

        request.state.identity = claims
        return claims

    return guard


get_current_identity = require_roles()
require_admin = require_roles(Role.admin)
