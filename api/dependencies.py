"""
api/dependencies.py -- Resource injection for route handlers.

The UserStore lives on app.state for the lifetime of the server (created and
closed by the lifespan in api/main.py). Routes never reach for app.state
themselves; they declare Depends(get_directory) and receive a UserDirectory
bound to that store.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.store import UserStore
from core.config import get_settings
from directory.service import UserDirectory


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_directory(store: UserStore = Depends(get_user_store)) -> UserDirectory:
    settings = get_settings()
    return UserDirectory(
        store,
        default_profile_photo=settings.default_profile_photo,
        self_registration_enabled=settings.self_registration_enabled,
    )
