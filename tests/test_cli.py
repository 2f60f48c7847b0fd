"""Tests for cli.py -- seeding accounts from the command line."""

import pytest

import cli
from auth.models import Role
from auth.store import UserStore
from core.config import Settings


@pytest.fixture
def db_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(debug=True, database_url=url))
    return url


def test_create_admin(db_url: str, capsys) -> None:
    code = cli.main(
        ["create-user", "--name", "Ada Admin", "--email", "Ada@Example.com", "--password", "s3cret!", "--role", "admin"]
    )
    assert code == 0
    assert "ada@example.com" in capsys.readouterr().out

    store = UserStore(db_url)
    try:
        user = store.get_by_email("ada@example.com")
        assert user is not None
        assert user.role is Role.admin
    finally:
        store.close()


def test_duplicate_email_fails(db_url: str, capsys) -> None:
    args = ["create-user", "--name", "Ada", "--email", "ada@example.com", "--password", "s3cret!"]
    assert cli.main(args) == 0
    assert cli.main(args) == 1
    assert "already exists" in capsys.readouterr().err


def test_invalid_password_fails(db_url: str, capsys) -> None:
    code = cli.main(["create-user", "--name", "Ada", "--email", "ada@example.com", "--password", "123"])
    assert code == 1
    assert "Password must be at least 6 characters" in capsys.readouterr().err


def test_seeding_works_with_self_registration_disabled(tmp_path, monkeypatch, capsys) -> None:
    url = f"sqlite:///{tmp_path / 'closed.db'}"
    monkeypatch.setattr(
        cli, "get_settings", lambda: Settings(debug=True, database_url=url, self_registration_enabled=False)
    )
    code = cli.main(["create-user", "--name", "Ada", "--email", "ada@example.com", "--password", "s3cret!", "--role", "admin"])
    assert code == 0, capsys.readouterr().err
