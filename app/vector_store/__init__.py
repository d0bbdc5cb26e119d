"""
Vector store abstractions and factories.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.embeddings.client import EmbeddingsClient
from app.vector_store.base import DistanceStrategy, Filter, VectorStore
from app.vector_store.sql_store import SQLVectorStore

DEFAULT_DISTANCE_STRATEGY = settings.vector_distance_strategy


def get_vector_store(
    session: AsyncSession,
    embeddings_client: EmbeddingsClient | None = None,
    filter: Filter | None = None,
) -> SQLVectorStore:
    """
    Factory to obtain a VectorStore bound to a request's session.
    `filter` becomes the store's default filter; without it the configured one is used.
    """
    strategy = DEFAULT_DISTANCE_STRATEGY.lower()
    if strategy not in {s.value for s in DistanceStrategy}:
        raise ValueError(f"Unsupported distance strategy: {strategy}")
    return SQLVectorStore(
        session,
        embeddings_client or EmbeddingsClient(),
        filter=filter if filter is not None else settings.vector_default_filter,
        distance_strategy=strategy,
    )


__all__ = ["DEFAULT_DISTANCE_STRATEGY", "get_vector_store", "SQLVectorStore", "VectorStore", "DistanceStrategy"]
