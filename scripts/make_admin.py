"""Promote an existing user to admin (or another role).

Usage:
    python scripts/make_admin.py user@example.com
    python scripts/make_admin.py user@example.com --role subadmin
"""
import argparse
import logging
import sys

from marketplace.database import SessionLocal
from marketplace.models.user import Role
from marketplace.services.exceptions import NotFoundError
from marketplace.services.user_service import UserService

logger = logging.getLogger("make_admin")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Change the role of an existing user.")
    parser.add_argument("email", help="Email of the user to promote")
    parser.add_argument(
        "--role",
        default=Role.ADMIN.value,
        choices=[role.value for role in Role],
        help="Role to assign (default: admin)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    args = parse_args(argv)

    session = SessionLocal()
    try:
        UserService(session).set_role(args.email, Role(args.role))
    except NotFoundError:
        logger.error(f"User {args.email} not found")
        return 1
    finally:
        session.close()

    logger.info(f"User {args.email} is now {args.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
