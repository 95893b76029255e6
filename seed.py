import asyncio
import logging

from inventory_api.core.config import settings
from inventory_api.core.database import init_db
from inventory_api.core.logging import setup_logging
from inventory_api.core.security import get_password_hash
from inventory_api.models.user import User, UserRole

logger = logging.getLogger("seed")


async def seed_admin():
    setup_logging(settings.LOG_LEVEL)
    if not settings.ADMIN_PASSWORD:
        raise SystemExit("Set ADMIN_PASSWORD in the environment or .env before seeding.")

    logger.info("Connecting to %s", settings.DATABASE_NAME)
    client = await init_db()
    try:
        existing = await User.find_one(User.username == settings.ADMIN_USERNAME)
        if existing:
            # Re-seeding resets the password and role, keeps the id the ledger points at
            existing.hashed_password = get_password_hash(settings.ADMIN_PASSWORD)
            existing.role = UserRole.ADMIN
            await existing.save()
            logger.info("Admin '%s' already existed, credentials reset", existing.username)
            return

        admin = User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            first_name="System",
            last_name="Admin",
            hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN,
        )
        await admin.insert()
        logger.info("Admin '%s' created", admin.username)
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(seed_admin())
