#!/usr/bin/env python3
"""
accountgate -- account administration from the command line.

Accounts are normally created through email activation, which always yields
role "user". The admin role is granted here.

Usage:
  python main.py create-admin --name "Ada" --email ada@example.com --password s3cret!
  python main.py promote ada@example.com

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the user database (default sqlite:///accountgate.db).
"""

import argparse
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_ADMIN
from auth.passwords import MIN_PASSWORD_LENGTH, PasswordTooLongError
from auth.store import UserStore
from core.config import get_settings


def _create_admin(store: UserStore, args: argparse.Namespace) -> int:
    if len(args.password) < MIN_PASSWORD_LENGTH:
        print(f"Error: password must be at least {MIN_PASSWORD_LENGTH} characters.", file=sys.stderr)
        return 1
    try:
        user_id = store.create_user(args.name, args.email, args.password, role=ROLE_ADMIN)
    except PasswordTooLongError as exc:
        print(f"Error: {exc}.", file=sys.stderr)
        return 1
    except IntegrityError:
        print(f"Error: an account for {args.email} already exists. Use 'promote' instead.", file=sys.stderr)
        return 1
    print(f"Created admin {args.email} (id {user_id})")
    return 0


def _promote(store: UserStore, args: argparse.Namespace) -> int:
    user = store.get_by_email(args.email)
    if user is None:
        print(f"Error: no account for {args.email}.", file=sys.stderr)
        return 1
    if user.role == ROLE_ADMIN:
        print(f"{args.email} is already an admin")
        return 0
    store.set_role(user.id, ROLE_ADMIN)
    print(f"Promoted {args.email} to admin")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accountgate",
        description="Manage accountgate accounts.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this invocation.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-admin", help="Create a new admin account.")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.set_defaults(func=_create_admin)

    promote = sub.add_parser("promote", help="Grant the admin role to an existing account.")
    promote.add_argument("email")
    promote.set_defaults(func=_promote)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    store = UserStore(args.database_url or get_settings().database_url)
    try:
        return args.func(store, args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
