from __future__ import annotations

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import declarative_base

from app.config import settings

Base = declarative_base()


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    # NULL until the embeddings step has run for this row.
    vector = Column(Vector(settings.embedding_dimensions), nullable=True)

    def __repr__(self) -> str:
        return f"Document(id={self.id!r}, content={self.content!r})"


__all__ = ["Base", "Document"]
