import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory_api.core.config import settings
from inventory_api.core.database import init_db
from inventory_api.core.exceptions import InventoryError
from inventory_api.core.logging import setup_logging
from inventory_api.routers import auth, category, dashboard, item, movement, supplier, user
from inventory_api.store.base import Store
from inventory_api.store.mongo import MongoStore

logger = logging.getLogger(__name__)


def create_app(store: Optional[Store] = None) -> FastAPI:
    """
    Build the API. Pass a store to skip the MongoDB connection
    (tests hand in a MemoryStore).
    """

    # ---------------------------------------------------------
    # 1. LIFESPAN MANAGER
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- STARTUP ---
        setup_logging(settings.LOG_LEVEL)
        client = None
        if store is None:
            logger.info("Initialization started")
            client = await init_db()
            app.state.store = MongoStore(client)
            logger.info("Connected to database '%s'", settings.DATABASE_NAME)

        yield

        # --- SHUTDOWN ---
        logger.info("System shutting down")
        if client is not None:
            client.close()

    # ---------------------------------------------------------
    # 2. APP INITIALIZATION
    # ---------------------------------------------------------
    app = FastAPI(
        title=settings.APP_NAME,
        lifespan=lifespan,
        description="Inventory API with an append-only stock movement ledger"
    )
    if store is not None:
        app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------
    # 3. ERROR HANDLERS
    # ---------------------------------------------------------
    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail()})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": {"error": "INTERNAL_ERROR", "message": "Internal server error"}},
        )

    # ---------------------------------------------------------
    # 4. ROUTERS
    # ---------------------------------------------------------
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(user.router, prefix="/users", tags=["User Management"])
    app.include_router(category.router, prefix="/categories", tags=["Category Management"])
    app.include_router(supplier.router, prefix="/suppliers", tags=["Supplier Management"])
    app.include_router(item.router, prefix="/items", tags=["Item Management"])
    app.include_router(movement.router, prefix="/movements", tags=["Stock Movements"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])

    # ---------------------------------------------------------
    # 5. BASIC ROUTES (Health Checks)
    # ---------------------------------------------------------
    @app.get("/", tags=["System"])
    async def root():
        return {"system": settings.APP_NAME, "status": "Online", "documentation": "/docs"}

    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
