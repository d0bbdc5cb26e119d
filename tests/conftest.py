import os

os.environ.setdefault("OPENAI_API_KEY", "sk-test")

import zlib
from types import SimpleNamespace
from typing import List

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APIConnectionError
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.db.models import Base
from app.db.session import get_session, make_sessionmaker

DIM = settings.embedding_dimensions


def fake_embedding(text: str) -> List[float]:
    """Bag-of-words vector: identical texts embed identically, disjoint words are orthogonal."""
    vector = [0.0] * DIM
    for token in text.lower().split():
        vector[zlib.crc32(token.encode("utf-8")) % DIM] += 1.0
    return vector


def connection_error(path: str) -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", f"https://api.openai.com/v1/{path}"))


class FakeEmbeddings:
    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.fail = False

    async def create(self, model: str, input: List[str]):
        self.calls.append(list(input))
        if self.fail:
            raise connection_error("embeddings")
        return SimpleNamespace(data=[SimpleNamespace(embedding=fake_embedding(text)) for text in input])


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeChatStream:
    def __init__(self, deltas, error: Exception | None = None) -> None:
        self.deltas = list(deltas)
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for delta in self.deltas:
            if isinstance(delta, SimpleNamespace):
                yield delta
            else:
                yield chunk(delta)
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    def __init__(self) -> None:
        self.calls: List[dict] = []
        self.streams: List[FakeChatStream] = []
        self.deltas = ["Hel", "lo", " there"]
        self.stream_error: Exception | None = None
        self.open_error: Exception | None = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.open_error is not None:
            raise self.open_error
        stream = FakeChatStream(self.deltas, self.stream_error)
        self.streams.append(stream)
        return stream


class FakeOpenAI:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)
        self.embeddings = FakeEmbeddings()
        self.constructed = 0


@pytest.fixture
def fake_openai(monkeypatch):
    fake = FakeOpenAI()

    def factory(**kwargs):
        fake.constructed += 1
        return fake

    monkeypatch.setattr("app.llm.client.AsyncOpenAI", factory)
    monkeypatch.setattr("app.embeddings.client.AsyncOpenAI", factory)
    return fake


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "documents.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture
def sessions(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return make_sessionmaker(engine)


@pytest.fixture
def plain_sessions(db_path):
    """Sessions with SQLAlchemy defaults, i.e. instances expire on commit."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine)


@pytest.fixture
def client(sessions, fake_openai):
    from app.main import app

    async def override_session():
        async with sessions() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
