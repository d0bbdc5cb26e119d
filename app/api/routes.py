from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.llm.client import LLMClient
from app.llm.streaming import relay_completion
from app.models.schemas import (
    ChatRequest,
    DocumentOut,
    IngestRequest,
    IngestResponse,
    SearchHit,
    SearchRequest,
    SearchResponse,
)
from app.vector_store import get_vector_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/chat", summary="Stream a chat completion")
async def chat(request: ChatRequest) -> StreamingResponse:
    # Constructing the client checks the API key before anything is sent.
    llm_client = LLMClient()
    logger.info("Chat request", extra={"messages": len(request.messages)})

    stream = await llm_client.open_stream(request.messages)
    return StreamingResponse(relay_completion(stream), media_type="text/plain; charset=utf-8")


@router.post("/api/documents", response_model=IngestResponse, summary="Store and embed texts")
async def ingest_documents(
    request: IngestRequest,
    session: AsyncSession = Depends(get_session),
) -> IngestResponse:
    store = get_vector_store(session)
    logger.info("Ingest request", extra={"count": len(request.texts)})

    documents = await store.add_texts(request.texts)
    return IngestResponse(
        count=len(documents),
        documents=[DocumentOut.model_validate(doc) for doc in documents],
    )


@router.post("/api/search", response_model=SearchResponse, summary="Similarity search over documents")
async def search_documents(
    request: SearchRequest,
    session: AsyncSession = Depends(get_session),
) -> SearchResponse:
    store = get_vector_store(session)
    logger.info("Search request", extra={"k": request.k, "with_score": request.with_score})

    if request.with_score:
        scored = await store.similarity_search_with_score(request.query, request.k, request.filter)
        hits = [SearchHit(document=DocumentOut.model_validate(doc), score=score) for doc, score in scored]
    else:
        documents = await store.similarity_search(request.query, request.k, request.filter)
        hits = [SearchHit(document=DocumentOut.model_validate(doc)) for doc in documents]
    return SearchResponse(results=hits)


__all__ = ["router"]
