#!/usr/bin/env python3
"""Bootstrap script for the villa booking API: migrate the schema and create the first administrator."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config

from villa_api.core.database import async_session_factory, close_db
from villa_api.schemas.user import ManualUserRequest
from villa_api.services.user_service import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Upgrade the database to the latest Alembic revision."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_admin() -> None:
    """Create the administrator account unless one already exists."""
    try:
        async with async_session_factory() as db:
            users = UserService(db)
            if await users.admin_exists():
                logger.info("An administrator already exists, skipping")
                return

            request = ManualUserRequest(
                username=os.getenv("ADMIN_USERNAME", "admin"),
                email=os.getenv("ADMIN_EMAIL", "admin@villaingrosso.com"),
                full_name=os.getenv("ADMIN_FULL_NAME", "Amministratore"),
                password=os.getenv("ADMIN_PASSWORD") or None,
                is_admin=True,
            )
            user, temporary_password = await users.create_manual_user(request)
    finally:
        await close_db()

    logger.info("Administrator created: username=%s email=%s", user.username, user.email)
    if temporary_password:
        # Shown once; change it after the first login
        print(f"Temporary administrator password: {temporary_password}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--skip-migrations", action="store_true", help="Only create the administrator")
    parser.add_argument("--skip-admin", action="store_true", help="Only run migrations")
    args = parser.parse_args()

    try:
        if not args.skip_migrations:
            run_migrations()
        if not args.skip_admin:
            asyncio.run(create_admin())
    except Exception as e:
        logger.error(f"Bootstrap failed: {e}")
        sys.exit(1)

    logger.info("Bootstrap completed successfully!")


if __name__ == "__main__":
    main()
