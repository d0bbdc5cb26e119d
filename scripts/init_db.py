"""
CLI to create the vector extension and the documents table.

Example:
    python -m scripts.init_db
"""

from __future__ import annotations

import asyncio
import logging
import sys

from app.config import setup_logging
from app.db.session import create_schema, get_engine


async def _run() -> None:
    engine = get_engine()
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(_run())
    except Exception:
        logger.exception("Schema creation failed")
        sys.exit(1)
    print("Schema ready")


if __name__ == "__main__":
    main()
