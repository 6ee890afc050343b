"""
Promote an existing user to SUPER_ADMIN.

Usage:
    python scripts/promote_super_admin.py user@example.com
"""
import argparse
import sys

from tenancy.config import get_settings
from tenancy.core.exceptions import NotFoundError
from tenancy.database import SessionLocal
from tenancy.services.auth import promote_super_admin
from tenancy.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Promote a user to SUPER_ADMIN")
    parser.add_argument("email", help="Email of an already registered user")
    args = parser.parse_args(argv)

    setup_logging(log_level=get_settings().LOG_LEVEL)

    db = SessionLocal()
    try:
        promote_super_admin(db, args.email)
    except NotFoundError as exc:
        logger.error(exc.detail)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
