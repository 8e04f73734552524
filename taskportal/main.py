from __future__ import annotations

import argparse
import getpass
import logging
import sys

from taskportal.infra.db import create_schema, init_db
from taskportal.infra.logging import setup_logging
from taskportal.infra.repository import AdminRepository
from taskportal.services.auth_service import hash_password

logger = logging.getLogger(__name__)


def _create_admin(args: argparse.Namespace) -> int:
    email = args.email.strip().lower()
    admins = AdminRepository()
    if admins.get_by_email(email):
        print(f"Admin {email} already exists", file=sys.stderr)
        return 1
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters", file=sys.stderr)
        return 1
    admin = admins.create_admin(
        {"name": args.name.strip(), "email": email, "password_hash": hash_password(password)}
    )
    logger.info("Admin %s created with id %s", admin.email, admin.id)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskportal")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the database tables")

    create_admin = commands.add_parser("create-admin", help="create an organization admin")
    create_admin.add_argument("--name", required=True)
    create_admin.add_argument("--email", required=True)
    create_admin.add_argument("--password")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging()
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.error("DB error: %s", exc)
        return 1

    if args.command == "init-db":
        create_schema()
        logger.info("Schema created")
        return 0
    return _create_admin(args)


if __name__ == "__main__":
    sys.exit(main())
