"""
tests/conftest.py -- Shared test fixtures for the user directory tests.

This module provides:
  - _make_test_store(): creates an isolated in-memory user DB
  - _patch_lifespan(): wires the test store into app.state, bypassing real startup
  - store / client: a fresh store and a TestClient bound to it, per test
  - admin / member: a pre-created admin and regular user with bearer tokens

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
Each test gets a uniquely named DB, so tests never see each other's users.

DEBUG and ALLOWED_HOSTS must be set before any app import: get_settings()
auto-generates SECRET_KEY in dev mode, and TrustedHostMiddleware must accept
TestClient's "testserver" host.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set env before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, Status, TokenClaims, User
from auth.store import UserStore
from auth.tokens import hash_password, issue_token


@dataclass(frozen=True)
class Account:
    """A pre-created user together with a valid token and its auth header."""

    id: str
    email: str
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_test_store() -> UserStore:
    """Create an isolated named shared-memory SQLite store."""
    name = f"test_users_{uuid.uuid4().hex}"
    return UserStore(db_url=f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


def add_account(
    store: UserStore,
    email: str,
    role: Role = Role.user,
    password: str = "password1",
    name: str = "Test User",
    status: Status = Status.active,
) -> Account:
    """Insert a user straight into the store and issue a token for it."""
    user_id = store.create_user(
        User(
            name=name,
            email=email,
            password_digest=hash_password(password),
            role=role,
            status=status,
        )
    )
    token = issue_token(TokenClaims(id=user_id, role=role))
    return Account(id=user_id, email=email, password=password, token=token)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    user_store = _make_test_store()
    # Touch the engine so the shared-memory DB stays alive for the whole test.
    user_store.ping()
    yield user_store
    user_store.close()


@pytest.fixture
def client(store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient running the real app against the per-test store."""
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(store: UserStore) -> Account:
    return add_account(store, "admin@example.com", role=Role.admin, password="adminpass1", name="Admin")


@pytest.fixture
def member(store: UserStore) -> Account:
    return add_account(store, "member@example.com", role=Role.user, password="memberpass1", name="Member")


@pytest.fixture
def make_account(store: UserStore):
    """Factory fixture: make_account(email, role=..., password=...) -> Account."""

    def _make(email: str, **kwargs) -> Account:
        return add_account(store, email, **kwargs)

    return _make
