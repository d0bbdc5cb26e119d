"""
SQLAlchemy-based VectorStore over a table with a pgvector column.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import numpy as np
from sqlalchemy import delete, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql.elements import ColumnElement

from app.db.models import Document
from app.embeddings.client import EmbeddingsClient
from app.vector_store.base import CONTENT_COLUMN, ID_COLUMN, DistanceStrategy, Filter, VectorStore
from app.vector_store.filters import build_filter_clauses

DEFAULT_VECTOR_COLUMN = "vector"
DEFAULT_COLUMNS: Dict[str, str] = {ID_COLUMN: "id", CONTENT_COLUMN: "content"}

logger = logging.getLogger(__name__)


def _distances(matrix: np.ndarray, query: np.ndarray, strategy: DistanceStrategy) -> np.ndarray:
    if strategy is DistanceStrategy.EUCLIDEAN:
        return np.linalg.norm(matrix - query, axis=1)
    dots = matrix @ query
    if strategy is DistanceStrategy.MAX_INNER_PRODUCT:
        # pgvector's <#> operator returns the negated inner product
        return -dots
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    similarity = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    return 1.0 - similarity


class SQLVectorStore(VectorStore):
    def __init__(
        self,
        session: AsyncSession,
        embeddings_client: EmbeddingsClient,
        model: Any = Document,
        vector_column: str = DEFAULT_VECTOR_COLUMN,
        columns: Mapping[str, str] | None = None,
        filter: Filter | None = None,
        distance_strategy: DistanceStrategy | str = DistanceStrategy.COSINE,
    ) -> None:
        self.session = session
        self.embeddings_client = embeddings_client
        self.model = model
        self.table = model.__table__
        self.table_name = self.table.name

        columns = dict(columns or DEFAULT_COLUMNS)
        missing_roles = {ID_COLUMN, CONTENT_COLUMN} - set(columns)
        if missing_roles:
            raise ValueError(f"Column mapping lacks roles: {sorted(missing_roles)}")
        for name in (vector_column, *columns.values()):
            if name not in self.table.c:
                raise ValueError(f"Column '{name}' not found in table '{self.table_name}'")

        self.vector_column = self.table.c[vector_column]
        self.id_column = self.table.c[columns[ID_COLUMN]]
        self.content_column = self.table.c[columns[CONTENT_COLUMN]]

        mapper = inspect(model)
        self._id_attr = mapper.get_property_by_column(self.id_column).key
        self._content_attr = mapper.get_property_by_column(self.content_column).key
        self._vector_attr = mapper.get_property_by_column(self.vector_column).key

        self.distance_strategy = DistanceStrategy(distance_strategy)
        self.filter = dict(filter) if filter is not None else None
        # Fail at construction on a malformed default filter rather than on first query.
        self._conditions(None)

        logger.info(
            "SQLVectorStore initialised",
            extra={
                "table": self.table_name,
                "vector_column": self.vector_column.name,
                "distance": self.distance_strategy.value,
                "default_filter": self.filter,
            },
        )

    # --- Transactions ---
    def _transaction(self) -> Any:
        """Own the transaction on an idle session, otherwise nest in the caller's one."""
        if self.session.in_transaction():
            return self.session.begin_nested()
        return self.session.begin()

    def _loaded_values(self, doc: Any) -> Tuple[Any, Any, Any]:
        return getattr(doc, self._id_attr), getattr(doc, self._content_attr), getattr(doc, self._vector_attr)

    def _keep_loaded(self, doc: Any, doc_id: Any, content: Any, vector: Any) -> None:
        # Commit expires instances and an async session cannot lazy-load them back.
        set_committed_value(doc, self._id_attr, doc_id)
        set_committed_value(doc, self._content_attr, content)
        set_committed_value(doc, self._vector_attr, vector)

    # --- Ingestion ---
    async def add_texts(self, texts: Sequence[str]) -> List[Any]:
        """
        Create one row per text in a single transaction, then embed them.
        If embedding fails the rows created here are deleted again.
        """
        if not texts:
            return []

        contents = list(texts)
        documents = [self.model(**{self._content_attr: text}) for text in contents]
        async with self._transaction():
            self.session.add_all(documents)
            await self.session.flush()
            ids = [getattr(doc, self._id_attr) for doc in documents]
        logger.info("Created documents", extra={"count": len(ids), "table": self.table_name})

        try:
            vectors = await self._store_vectors(ids, contents)
        except Exception:
            logger.warning(
                "Embedding failed, removing documents created in this batch",
                extra={"count": len(ids), "table": self.table_name},
            )
            await self._delete_rows(ids, documents)
            raise

        for doc, doc_id, content, vector in zip(documents, ids, contents, vectors):
            self._keep_loaded(doc, doc_id, content, vector)
        return documents

    async def add_models(self, documents: Sequence[Any]) -> None:
        """Embed each document's content and store the vectors."""
        if not documents:
            return

        ids = [getattr(doc, self._id_attr) for doc in documents]
        contents = [getattr(doc, self._content_attr) for doc in documents]
        vectors = await self._store_vectors(ids, contents)
        for doc, doc_id, content, vector in zip(documents, ids, contents, vectors):
            self._keep_loaded(doc, doc_id, content, vector)

    async def _store_vectors(self, ids: Sequence[Any], contents: Sequence[str]) -> List[np.ndarray]:
        vectors = await self.embeddings_client.embed_texts(contents)
        async with self._transaction():
            for doc_id, vector in zip(ids, vectors):
                await self.session.execute(
                    update(self.table).where(self.id_column == doc_id).values({self.vector_column: vector})
                )
        logger.info("Stored document vectors", extra={"count": len(ids), "table": self.table_name})
        return [np.asarray(vector, dtype=np.float32) for vector in vectors]

    async def _delete_rows(self, ids: Sequence[Any], documents: Sequence[Any]) -> None:
        async with self._transaction():
            await self.session.execute(delete(self.table).where(self.id_column.in_(ids)))
        for doc in documents:
            if doc in self.session:
                self.session.expunge(doc)

    # --- Queries ---
    async def similarity_search(self, query: str, k: int, filter: Filter | None = None) -> List[Any]:
        results = await self.similarity_search_with_score(query, k, filter)
        return [doc for doc, _ in results]

    async def similarity_search_with_score(
        self, query: str, k: int, filter: Filter | None = None
    ) -> List[Tuple[Any, float]]:
        if k <= 0:
            return []
        conditions = self._conditions(filter)
        query_vector = await self.embeddings_client.embed_text(query)
        return await self._rank(query_vector, k, conditions)

    async def similarity_search_vector_with_score(
        self, query_vector: Sequence[float], k: int, filter: Filter | None = None
    ) -> List[Tuple[Any, float]]:
        if k <= 0:
            return []
        return await self._rank(query_vector, k, self._conditions(filter))

    def _conditions(self, filter: Filter | None) -> List[ColumnElement]:
        # A per-call filter replaces the default one, it is never merged with it.
        active = self.filter if filter is None else filter
        clauses = build_filter_clauses(self.table, active, excluded_columns=(self.vector_column.name,))
        return [self.vector_column.is_not(None), *clauses]

    async def _rank(
        self, query_vector: Sequence[float], k: int, conditions: List[ColumnElement]
    ) -> List[Tuple[Any, float]]:
        dialect = self.session.get_bind().dialect.name
        async with self._transaction():
            if dialect == "postgresql":
                results = await self._rank_in_database(query_vector, k, conditions)
            else:
                results = await self._rank_in_process(query_vector, k, conditions)
            loaded = [self._loaded_values(doc) for doc, _ in results]

        for (doc, _), values in zip(results, loaded):
            self._keep_loaded(doc, *values)
        logger.info(
            "Similarity search",
            extra={"table": self.table_name, "k": k, "returned": len(results), "dialect": dialect},
        )
        return results

    async def _rank_in_database(
        self, query_vector: Sequence[float], k: int, conditions: List[ColumnElement]
    ) -> List[Tuple[Any, float]]:
        distance = self._distance_expression(query_vector).label("distance")
        stmt = (
            select(self.model, distance)
            .where(*conditions)
            .order_by(distance, self.id_column)
            .limit(k)
        )
        result = await self.session.execute(stmt)
        return [(doc, float(score)) for doc, score in result.all()]

    async def _rank_in_process(
        self, query_vector: Sequence[float], k: int, conditions: List[ColumnElement]
    ) -> List[Tuple[Any, float]]:
        stmt = select(self.model).where(*conditions).order_by(self.id_column)
        documents = list((await self.session.execute(stmt)).scalars().all())
        if not documents:
            return []

        matrix = np.asarray([getattr(doc, self._vector_attr) for doc in documents], dtype=np.float32)
        query = np.asarray(query_vector, dtype=np.float32)
        distances = _distances(matrix, query, self.distance_strategy)
        order = np.argsort(distances, kind="stable")[:k]
        return [(documents[i], float(distances[i])) for i in order]

    def _distance_expression(self, query_vector: Sequence[float]) -> ColumnElement:
        column = self.vector_column
        if self.distance_strategy is DistanceStrategy.EUCLIDEAN:
            return column.l2_distance(query_vector)
        if self.distance_strategy is DistanceStrategy.MAX_INNER_PRODUCT:
            return column.max_inner_product(query_vector)
        return column.cosine_distance(query_vector)


__all__ = ["SQLVectorStore", "DEFAULT_VECTOR_COLUMN", "DEFAULT_COLUMNS"]
