from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field


# Chat
class ChatMessage(BaseModel):
    """One conversation turn as sent by the client."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """Conversation history, oldest turn first."""

    messages: List[ChatMessage] = Field(..., min_length=1)


# Documents
class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str


class IngestRequest(BaseModel):
    """Texts to store and embed as one batch."""

    texts: List[str] = Field(..., min_length=1)


class IngestResponse(BaseModel):
    count: int = Field(..., ge=0)
    documents: List[DocumentOut]


class SearchRequest(BaseModel):
    """Nearest-neighbour query; `filter` overrides the store default when set."""

    query: str = Field(..., min_length=1)
    k: int = Field(default=4, gt=0, le=100)
    filter: Dict[str, Any] | None = None
    with_score: bool = False


class SearchHit(BaseModel):
    document: DocumentOut
    score: float | None = None


class SearchResponse(BaseModel):
    results: List[SearchHit]


__all__ = [
    "ChatMessage",
    "ChatRequest",
    "DocumentOut",
    "IngestRequest",
    "IngestResponse",
    "SearchRequest",
    "SearchHit",
    "SearchResponse",
]
