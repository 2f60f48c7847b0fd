"""
api/routes/auth.py -- Registration, login and self-service profile endpoints.

Routes:
  POST /auth/register  -- create an account; 201 with a token for it
  POST /auth/login     -- email/password login; 200 with a token
  GET  /auth/me        -- the caller's own record (requires auth)

Security:
  Login returns the same "bad_credentials" error for an unknown email and a
  wrong password, so responses do not reveal which addresses are registered.
  Cache-Control: no-store is set on every response that carries a token.
  Logout is client-side only: tokens are stateless and are simply discarded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_directory
from api.models import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse, UserEnvelope, UserResponse
from auth.dependencies import get_current_identity
from auth.models import TokenClaims
from auth.tokens import token_expires_in
from directory.service import UserDirectory

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public
# - GET  /auth/me:       requires auth (get_current_identity)
router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(
    body: RegisterRequest,
    response: Response,
    directory: UserDirectory = Depends(get_directory),
) -> RegisterResponse:
    """Register a new account and log it in.

    Fields are validated in order name, email, password, role, status and the
    first failure is returned as a 400 naming that field.
    """
    registration = directory.register(body.name, body.email, body.password, body.role, body.status)
    response.headers["Cache-Control"] = "no-store"
    return RegisterResponse(token=registration.token)


@router.post("/auth/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    directory: UserDirectory = Depends(get_directory),
) -> TokenResponse:
    """Authenticate with email and password; returns a bearer token.

    Include the token in the Authorization header as: Bearer <token>
    """
    token = directory.authenticate(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=token, expires_in=token_expires_in())


@router.get("/auth/me", response_model=UserEnvelope)
def me(
    identity: TokenClaims = Depends(get_current_identity),
    directory: UserDirectory = Depends(get_directory),
) -> UserEnvelope:
    """Return the record of the currently authenticated user."""
    return UserEnvelope(user=UserResponse.from_user(directory.get_profile(identity)))
