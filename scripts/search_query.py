"""
CLI to search stored documents by text query.

Example:
    python -m scripts.search_query --query "Hello world" --top-k 3
    python -m scripts.search_query -q "Hello world" --filter '{"content": {"not": "Bye bye"}}'
"""

from __future__ import annotations

import argparse
import asyncio
import json

from app.config import setup_logging
from app.db.session import get_engine, make_sessionmaker
from app.vector_store import get_vector_store


async def _search(query: str, top_k: int, filter: dict | None) -> None:
    engine = get_engine()
    try:
        async with make_sessionmaker(engine)() as session:
            store = get_vector_store(session)
            results = await store.similarity_search_with_score(query, top_k, filter)
    finally:
        await engine.dispose()

    if not results:
        print("No results")
        return

    for idx, (doc, distance) in enumerate(results, start=1):
        print(f"#{idx} distance={distance:.4f} id={doc.id} content={doc.content!r}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Search stored documents by text query.")
    parser.add_argument("--query", "-q", required=True, help="Query text")
    parser.add_argument("--top-k", type=int, default=4, help="How many results to return")
    parser.add_argument("--filter", default=None, help="JSON filter overriding the configured default")
    args = parser.parse_args()

    setup_logging()
    filter = json.loads(args.filter) if args.filter else None
    asyncio.run(_search(args.query, args.top_k, filter))


if __name__ == "__main__":
    main()
