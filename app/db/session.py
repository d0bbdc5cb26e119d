"""
Async SQLAlchemy engine and per-request sessions.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    return create_async_engine(settings.database_url, pool_pre_ping=True)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session (and connection) per request."""
    async with make_sessionmaker(get_engine())() as session:
        yield session


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create the vector extension (PostgreSQL only) and the tables.
    Not a migration tool: existing tables are left as they are.
    """
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ready", extra={"dialect": engine.dialect.name})


__all__ = ["get_engine", "make_sessionmaker", "get_session", "create_schema"]
