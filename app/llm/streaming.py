"""
Relay of a provider token stream onto an HTTP response body.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator

from app.config import settings
from app.llm.client import iter_text_deltas

logger = logging.getLogger(__name__)


async def relay_completion(stream: Any, error_marker: str | None = None) -> AsyncIterator[str]:
    """
    Forward deltas as they arrive. The response has already committed to a
    200 status, so a provider failure here ends the body with the error marker.
    If the client goes away the provider stream is closed with it.
    """
    marker = settings.stream_error_marker if error_marker is None else error_marker
    forwarded = 0
    try:
        async with aclosing(iter_text_deltas(stream)) as deltas:
            async for delta in deltas:
                forwarded += 1
                yield delta
    except Exception:
        logger.exception("Chat stream aborted", extra={"forwarded_chunks": forwarded})
        if marker:
            yield marker
        return

    logger.info("Chat stream completed", extra={"forwarded_chunks": forwarded})


__all__ = ["relay_completion"]
