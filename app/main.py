"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.services.storage import CloudinaryStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect the database handle at startup and dispose it on shutdown."""
    database: Database = app.state.database
    database.connect()
    logger.info("Application started", extra={"environment": app.state.settings.APP_ENV})
    try:
        yield
    finally:
        database.disconnect()
        logger.info("Application stopped")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    storage: CloudinaryStorage | None = None,
) -> FastAPI:
    """Build the app; collaborators default to ones built from settings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    app = FastAPI(
        title="Tubekit Accounts API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.storage = storage or CloudinaryStorage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Tubekit Accounts API"}

    return app


app = create_app()
