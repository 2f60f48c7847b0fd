"""
api/routes/users.py -- User directory REST endpoints.

Routes:
  GET    /users?page=N   -- one page of 10 users plus the total (admin only)
  POST   /users          -- create a user, no token issued (admin only)
  GET    /users/{id}     -- read a user (admin, or the user themselves)
  PUT    /users/{id}     -- partial update (admin only)
  DELETE /users/{id}     -- delete (admin only)

The coarse role gate is the access guard from auth/dependencies.py; the
per-record rules (self-access, id format, not-found) are enforced by
UserDirectory so they hold for any caller, not just these routes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_directory
from api.models import MessageResponse, RegisterRequest, UserEnvelope, UserListResponse, UserResponse, UserUpdate
from auth.dependencies import get_current_identity, require_admin
from auth.models import TokenClaims
from directory.service import UserDirectory

# Auth policy:
# - GET    /users:       requires admin (require_admin)
# - POST   /users:       requires admin (require_admin)
# - GET    /users/{id}:  requires auth; admin or self checked in UserDirectory
# - PUT    /users/{id}:  requires admin (require_admin)
# - DELETE /users/{id}:  requires admin (require_admin)
router = APIRouter()


@router.get("/users", response_model=UserListResponse)
def list_users(
    page: Optional[str] = None,
    identity: TokenClaims = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> UserListResponse:
    """List users ten at a time. `page` is 1-indexed; anything unparsable means page 1."""
    result = directory.list_users(identity, page)
    return UserListResponse(
        users=[UserResponse.from_user(u) for u in result.users],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.post("/users", response_model=UserEnvelope, status_code=201)
def create_user(
    body: RegisterRequest,
    identity: TokenClaims = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> UserEnvelope:
    """Create a user account. Admin only; the admin's own session is untouched."""
    user = directory.create_user(identity, body.name, body.email, body.password, body.role, body.status)
    return UserEnvelope(user=UserResponse.from_user(user))


@router.get("/users/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    identity: TokenClaims = Depends(get_current_identity),
    directory: UserDirectory = Depends(get_directory),
) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.from_user(directory.get_user(identity, user_id)))


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    body: UserUpdate,
    identity: TokenClaims = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> UserEnvelope:
    """Overwrite the provided fields. Omitted or empty fields keep their stored value."""
    user = directory.update_user(
        identity,
        user_id,
        name=body.name,
        email=body.email,
        role=body.role,
        status=body.status,
    )
    return UserEnvelope(user=UserResponse.from_user(user))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    identity: TokenClaims = Depends(require_admin),
    directory: UserDirectory = Depends(get_directory),
) -> MessageResponse:
    directory.delete_user(identity, user_id)
    return MessageResponse(message="User deleted")
