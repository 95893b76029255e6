import logging

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from inventory_api.core.config import settings
from inventory_api.models.user import User
from inventory_api.models.category import Category
from inventory_api.models.supplier import Supplier
from inventory_api.models.item import Item
from inventory_api.models.movement import Movement

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [User, Category, Supplier, Item, Movement]

async def init_db(url: str | None = None, database_name: str | None = None) -> AsyncIOMotorClient:
    """Connect to MongoDB, initialize Beanie and return the client (sessions start from it)."""
    client = AsyncIOMotorClient(
        url or settings.MONGODB_URL,
        uuidRepresentation="standard",
    )
    name = database_name or settings.DATABASE_NAME

    await init_beanie(database=client[name], document_models=DOCUMENT_MODELS)

    logger.info("Beanie initialized with database: %s", name)
    return client
