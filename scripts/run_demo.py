"""
End-to-end walk through the vector store: ingest a few texts, search them,
then search through a store that carries a default filter and override it.

Example:
    python -m scripts.run_demo
"""

from __future__ import annotations

import asyncio
import logging

from app.config import setup_logging
from app.db.session import create_schema, get_engine, make_sessionmaker
from app.embeddings.client import EmbeddingsClient
from app.vector_store.sql_store import SQLVectorStore

TEXTS = ["Hello world", "Bye bye", "What's this?"]

logger = logging.getLogger(__name__)


async def _run() -> None:
    engine = get_engine()
    embeddings = EmbeddingsClient()
    try:
        await create_schema(engine)
        async with make_sessionmaker(engine)() as session:
            store = SQLVectorStore(session, embeddings)
            await store.add_texts(TEXTS)
            result_one = await store.similarity_search("Hello world", 1)
            logger.info("Plain search: %s", result_one)

            filtered = SQLVectorStore(session, embeddings, filter={"content": {"equals": "default"}})
            await filtered.add_texts(TEXTS)
            result_two = await filtered.similarity_search("Hello world", 1)
            logger.info("Default filter search: %s", result_two)

            result_three = await filtered.similarity_search_with_score(
                "Hello world",
                1,
                {"content": {"equals": "Bye bye"}},
            )
            logger.info("Overridden filter search with score: %s", result_three)
    finally:
        await engine.dispose()


def main() -> None:
    setup_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
