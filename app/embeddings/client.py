"""
OpenAI embeddings client.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from openai import AsyncOpenAI

from app.config import require_openai_api_key, settings

DEFAULT_EMBEDDING_MODEL = settings.embedding_model_name
DEFAULT_EMBED_BATCH_SIZE = settings.embed_batch_size
DEFAULT_EMBEDDING_TIMEOUT = settings.embedding_timeout_sec
DEFAULT_EMBEDDING_DIMENSIONS = settings.embedding_dimensions

logger = logging.getLogger(__name__)


class EmbeddingsClient:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        timeout: float = DEFAULT_EMBEDDING_TIMEOUT,
        dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
        client: AsyncOpenAI | None = None,
    ) -> None:
        api_key = require_openai_api_key()
        self.model = model
        self.batch_size = batch_size
        self.dimensions = dimensions
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            response = await self.client.embeddings.create(model=self.model, input=batch)
            embeddings.extend([item.embedding for item in response.data])
        if len(embeddings) != len(texts):
            raise ValueError(f"Embeddings provider returned {len(embeddings)} vectors for {len(texts)} texts")
        for vector in embeddings:
            if len(vector) != self.dimensions:
                raise ValueError(f"Expected {self.dimensions}-dimensional embeddings, got {len(vector)}")
        logger.debug("Embedded texts", extra={"count": len(texts), "model": self.model})
        return embeddings

    async def embed_text(self, text: str) -> List[float]:
        return (await self.embed_texts([text]))[0]


__all__ = ["EmbeddingsClient", "DEFAULT_EMBEDDING_MODEL"]
