"""
Create (or reset) the platform super admin.

Credentials come from the command line or, when omitted, from
SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD / SUPER_ADMIN_FULL_NAME.

Usage:
    python scripts/seed_super_admin.py --email admin@example.com --password '...'
"""
import argparse
import sys

from tenancy.config import get_settings
from tenancy.database import SessionLocal, init_db
from tenancy.services.auth import seed_super_admin
from tenancy.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main(argv=None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Create or reset the super admin account")
    parser.add_argument("--email", default=settings.SUPER_ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.SUPER_ADMIN_PASSWORD)
    parser.add_argument("--full-name", default=settings.SUPER_ADMIN_FULL_NAME)
    parser.add_argument("--init-db", action="store_true", help="Create tables first")
    args = parser.parse_args(argv)

    setup_logging(log_level=settings.LOG_LEVEL)

    if not args.email or not args.password:
        logger.error("Email and password are required (flags or SUPER_ADMIN_* settings)")
        return 1
    if len(args.password) < 8:
        logger.error("Password must be at least 8 characters")
        return 1

    if args.init_db:
        init_db()

    db = SessionLocal()
    try:
        seed_super_admin(db, args.email, args.password, args.full_name)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
