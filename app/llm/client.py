"""
OpenAI streaming chat client.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Sequence

from openai import AsyncOpenAI

from app.config import require_openai_api_key, settings
from app.llm.messages import to_provider_turns
from app.models.schemas import ChatMessage

DEFAULT_LLM_MODEL = settings.llm_model_name
DEFAULT_LLM_TIMEOUT = settings.llm_timeout_sec

logger = logging.getLogger(__name__)


class LLMClient:
    def __init__(
        self,
        model: str = DEFAULT_LLM_MODEL,
        timeout: float = DEFAULT_LLM_TIMEOUT,
        client: AsyncOpenAI | None = None,
    ) -> None:
        api_key = require_openai_api_key()
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def open_stream(self, messages: Sequence[ChatMessage]) -> Any:
        """Start a streaming completion; the returned stream yields provider chunks."""
        turns = to_provider_turns(messages)
        logger.info("Opening chat stream", extra={"model": self.model, "turns": len(turns)})
        return await self.client.chat.completions.create(
            model=self.model,
            messages=turns,
            stream=True,
        )


async def iter_text_deltas(stream: Any) -> AsyncIterator[str]:
    """Yield text deltas from a provider stream, closing it however iteration ends."""
    try:
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta
    finally:
        await stream.close()


__all__ = ["LLMClient", "iter_text_deltas", "DEFAULT_LLM_MODEL", "DEFAULT_LLM_TIMEOUT"]
