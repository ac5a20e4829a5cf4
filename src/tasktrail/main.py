"""TaskTrail main application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktrail import __version__
from tasktrail.api import router
from tasktrail.config import Environment, settings
from tasktrail.db.base import Database

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tasktrail")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting TaskTrail server...")
    logger.info(f"Environment: {settings.env.value}")

    database = Database.from_settings(settings)
    if settings.env == Environment.DEVELOPMENT:
        # Staging/production schemas are managed by Alembic.
        await database.create_all()
    app.state.database = database
    logger.info("Database initialized")

    yield

    # Cleanup
    logger.info("Shutting down TaskTrail server...")
    await database.close()
    app.state.database = None
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="TaskTrail",
    description="Multi-user task tracker with an audit trail",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)

# Include API router
app.include_router(router)


def main():
    """Entry point for the application."""
    uvicorn.run(
        "tasktrail.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
