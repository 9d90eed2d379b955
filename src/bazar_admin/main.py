import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from tortoise import Tortoise
from tortoise.contrib.fastapi import tortoise_exception_handlers

from .core.config import TORTOISE_ORM, LOG_LEVEL, LOG_NAMESPACES
from .core.logging_config import configure_logging
from .features.auth.router import router as auth_router
from .features.articles.router import router as articles_router
from .features.reports.router import router as reports_router
from .features.audit.router import router as audit_router
from .features.notifications.router import router as notifications_router

configure_logging(LOG_LEVEL, LOG_NAMESPACES)
logger = logging.getLogger("bazar_admin.main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Connects Tortoise-ORM on startup and closes its connections on shutdown.
    """
    logger.info("Starting Bazar admin API...")
    await Tortoise.init(config=TORTOISE_ORM)
    logger.info("Tortoise-ORM has been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Tortoise-ORM connections have been closed.")


app = FastAPI(
    title="Bazar Admin API",
    description="Moderation back office for the Bazar marketplace: articles, user reports and audit trail.",
    version="0.1.0",
    exception_handlers=tortoise_exception_handlers(),
    lifespan=lifespan,
)


@app.get("/")
async def read_root(request: Request):
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Welcome to the Bazar Admin API!"}


app.include_router(auth_router, prefix="/api/v1")
app.include_router(articles_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
app.include_router(audit_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
