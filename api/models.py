"""
API request and response models for the user directory REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request bodies declare every field as an optional string: field rules live in
directory/validation.py so clients get one field-specific message in a fixed
order instead of Pydantic's all-at-once error list. Unknown body fields are
ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register and POST /users."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(BaseModel):
    """Request body for PUT /users/{id}. Omitted or empty fields are left unchanged."""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. The password digest has no field here."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: str
    status: str
    profile_photo: str
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            status=user.status.value,
            profile_photo=user.profile_photo,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(BaseModel):
    """Single-user response: {"user": {...}}."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse


class UserListResponse(BaseModel):
    """Response for GET /users."""

    model_config = ConfigDict(frozen=True)

    users: list[UserResponse]
    total: int
    page: int
    page_size: int


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "User registered successfully"
    token: str


class TokenResponse(BaseModel):
    """Response for POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
