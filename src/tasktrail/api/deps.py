"""API dependencies."""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail.auth.token import decode_access_token
from tasktrail.db.base import Database
from tasktrail.engine import InvalidCredentials, TaskTrailEngine
from tasktrail.models import Actor

logger = logging.getLogger("tasktrail.api")


def get_database(request: Request) -> Database:
    """Store handle created in the application lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return database


async def get_db_session(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with database.session() as session:
        yield session


def get_engine(database: Database = Depends(get_database)) -> TaskTrailEngine:
    return TaskTrailEngine(database)


async def get_current_actor(
    authorization: str | None = Header(None),
) -> Actor:
    """
    Resolve the caller from an ``Authorization: Bearer <jwt>`` header.

    The actor's role comes from the token; no database round trip.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Missing authorization. Use Authorization: Bearer <token>",
        )

    try:
        return decode_access_token(authorization[7:])
    except InvalidCredentials as e:
        logger.info(f"Rejected token: {e.message}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return actor
