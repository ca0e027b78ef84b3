#!/usr/bin/env python3
"""
Canary admin CLI -- bootstrap accounts and run maintenance without the server.

Usage:
  python main.py create-user alice
  python main.py sweep

create-user prompts for the password twice (never pass it on the command line,
where it would land in shell history and the process table).

Configuration comes from the same environment / .env as the API
(DATABASE_URL, BCRYPT_ROUNDS, ...). See core/config.py.
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.db import Database
from auth.errors import AuthError
from auth.service import AuthService
from core.config import get_settings


def _read_password() -> Optional[str]:
    password = getpass.getpass("  Password: ")
    confirm = getpass.getpass("  Confirm password: ")
    if password != confirm:
        print("  [!] Passwords do not match.")
        return None
    return password


def cmd_create_user(service: AuthService, args: argparse.Namespace) -> int:
    password = _read_password()
    if password is None:
        return 1
    user = service.create_user(args.username, password)
    print(f"  Created user '{user.username}' (id={user.id})")
    return 0


def cmd_sweep(service: AuthService, args: argparse.Namespace) -> int:
    removed = service.sweep_expired()
    print(f"  Removed {removed} expired session(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canary",
        description="Canary auth administration.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a local user account")
    create.add_argument("username", help="Login name (must be unique)")
    create.set_defaults(func=cmd_create_user)

    sweep = sub.add_parser("sweep", help="Delete expired sessions once and exit")
    sweep.set_defaults(func=cmd_sweep)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    db = Database(settings.database_url, timeout=settings.db_timeout_seconds)
    try:
        return args.func(AuthService.from_settings(db, settings), args)
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
