#!/usr/bin/env python3
"""
User directory -- command-line administration.

Usage:
  python cli.py create-user --name "Ada Admin" --email ada@example.com --password s3cret! --role admin
  python cli.py create-user --name "Bob" --email bob@example.com --password hunter22 --status inactive

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the user database (default: SQLite file in the project root)
  SECRET_KEY    Token signing key (>= 32 chars); set DEBUG=true to auto-generate one locally
"""

import argparse
import sys

from auth.store import UserStore
from core.config import get_settings
from core.errors import DirectoryError
from directory.service import UserDirectory


def _create_user(args: argparse.Namespace) -> int:
    """Seed an account directly in the store.

    Same validation and duplicate-email check as the API, but needs no admin
    token and ignores SELF_REGISTRATION_ENABLED -- this is how the first
    admin is created.
    """
    settings = get_settings()
    store = UserStore(settings.database_url)
    directory = UserDirectory(
        store,
        default_profile_photo=settings.default_profile_photo,
        self_registration_enabled=settings.self_registration_enabled,
    )
    try:
        user = directory.seed_user(args.name, args.email, args.password, args.role, args.status)
    except DirectoryError as e:
        print(f"  [!] {e.message}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  Created {user.role.value} {user.email} (id={user.id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="User directory administration")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user account")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--role", default="user", choices=["admin", "user"])
    create.add_argument("--status", default="active", choices=["active", "inactive"])
    create.set_defaults(func=_create_user)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
