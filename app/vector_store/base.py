"""
Vector store interface and shared types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Protocol, Sequence, Tuple

Filter = Mapping[str, Any]

ID_COLUMN = "id"
CONTENT_COLUMN = "content"


class DistanceStrategy(str, Enum):
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    MAX_INNER_PRODUCT = "max_inner_product"


class VectorStore(Protocol):
    async def add_texts(self, texts: Sequence[str]) -> List[Any]:
        ...

    async def add_models(self, documents: Sequence[Any]) -> None:
        ...

    async def similarity_search(self, query: str, k: int, filter: Filter | None = None) -> List[Any]:
        ...

    async def similarity_search_with_score(
        self, query: str, k: int, filter: Filter | None = None
    ) -> List[Tuple[Any, float]]:
        ...


__all__ = ["DistanceStrategy", "Filter", "VectorStore", "ID_COLUMN", "CONTENT_COLUMN"]
