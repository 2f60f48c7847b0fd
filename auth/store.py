"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Resource ownership:
  UserStore is constructed once by the FastAPI lifespan (api/main.py) and
  handed to routes through the get_user_store() dependency. The engine (and
  its connection pool) is created once, lazily, on first use and disposed
  by close() at shutdown. Creation holds a lock because sync routes reach
  the store from several threadpool workers at once.

Schema notes:
  id is the public opaque identifier (UUID hex). seq is an internal
  autoincrement column that gives list_users() a stable insertion order for
  pagination; it is never exposed.

  email carries a UNIQUE constraint. The directory service still checks for
  an existing email before inserting (so the common case gets a clean
  message), and the constraint closes the race where two concurrent
  registrations both pass that check.

Layer rule: no imports from api/ or directory/.
"""

from __future__ import annotations

import re
import threading
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, func, select, text
from sqlalchemy.engine import Engine

from auth.models import Role, Status, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),  # always lowercased
    Column("password_digest", Text, nullable=False),
    Column("role", String(16), nullable=False, server_default=Role.user.value),
    Column("status", String(16), nullable=False, server_default=Status.active.value),
    Column("profile_photo", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns update_user() may write. Anything else is a programming error.
_MUTABLE_FIELDS = frozenset({"name", "email", "role", "status", "profile_photo", "password_digest"})

_USER_ID_PATTERN = re.compile(r"[0-9a-fA-F]{32}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_user_id() -> str:
    return uuid.uuid4().hex


def is_valid_user_id(value: str) -> bool:
    """Return True if value is a well-formed user identifier (32 hex chars)."""
    return _USER_ID_PATTERN.fullmatch(value) is not None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(get_settings().database_url)
        user_id = store.create_user(User(name="Ada", email="ada@example.com", password_digest=...))
        user = store.get_by_id(user_id)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.db_url = db_url
        self._engine: Engine | None = None
        self._engine_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        """Create the engine and schema on first access, then reuse it."""
        if self._engine is None:
            with self._engine_lock:
                if self._engine is None:
                    connect_args: dict = {}
                    if self.db_url.startswith("sqlite"):
                        connect_args["check_same_thread"] = False
                    engine = create_engine(self.db_url, connect_args=connect_args)
                    _metadata.create_all(engine)
                    self._engine = engine
        return self._engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The caller is expected to lowercase the email first.
        """
        user_id = new_user_id()
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    password_digest=user.password_digest,
                    role=user.role.value,
                    status=user.status.value,
                    profile_photo=user.profile_photo,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return user_id

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by public id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email, case-insensitively. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email.lower())).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, offset: int, limit: int) -> list[User]:
        """Return one page of users in insertion order."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.seq).offset(offset).limit(limit)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: str, **fields) -> bool:
        """Overwrite the given fields on an existing user and stamp updated_at.

        Accepted fields: name, email, role, status, profile_photo,
        password_digest. Role and Status members are stored by value.

        Returns True if a row was updated, False if user_id was not found.
        Raises sqlalchemy.exc.IntegrityError if email collides with another user.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        values = {k: (v.value if isinstance(v, (Role, Status)) else v) for k, v in fields.items()}
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        with self._engine_lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_digest=row.password_digest,
        role=Role(row.role),
        status=Status(row.status),
        profile_photo=row.profile_photo,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
