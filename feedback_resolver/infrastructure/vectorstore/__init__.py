"""
Vector Store Infrastructure
============================

Milvus vector store implementation for complaint embeddings.

The collection uses cosine similarity, a string primary key and dynamic
fields for metadata, so a search hit's distance is the cosine score and
its entity carries the metadata stored with it.
"""

import asyncio
from typing import List, Optional
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pymilvus import MilvusClient

from feedback_resolver.config import settings
from feedback_resolver.core import VectorStoreException


METADATA_FIELDS = [
    "text_snippet",
    "customer_email",
    "normalized_key",
    "sentiment",
    "answer_type",
    "timestamp",
]


@dataclass
class VectorRecord:
    """A vector with its id and metadata."""
    id: str
    embedding: List[float]
    metadata: dict = field(default_factory=dict)


@dataclass
class SearchResult:
    """Result from vector search."""
    id: str
    score: float
    metadata: dict


class IVectorStore(ABC):
    """
    Interface for vector store operations.

    Following Interface Segregation and Dependency Inversion principles.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the vector store."""

    @abstractmethod
    async def get_document_count(self) -> int:
        """Get number of vectors in the collection."""

    @abstractmethod
    async def add_documents(self, documents: List[VectorRecord]) -> None:
        """Add vectors to the store."""

    @abstractmethod
    async def search(self, query_embedding: List[float], top_k: int = 3) -> List[SearchResult]:
        """Search for similar vectors."""


class MilvusVectorStore(IVectorStore):
    """
    Zilliz Cloud (Managed Milvus) implementation of vector store.

    MilvusClient is synchronous; calls run in a worker thread and carry
    a per-call timeout.
    """

    def __init__(
        self,
        collection_name: Optional[str] = None,
        uri: Optional[str] = None,
        token: Optional[str] = None,
        dimension: Optional[int] = None,
        timeout_seconds: Optional[float] = None
    ):
        self._collection_name = collection_name or settings.milvus_collection_name
        self._uri = uri or settings.zilliz_uri
        self._token = token if token is not None else settings.zilliz_api_key
        self._dimension = dimension or settings.embedding_dimension
        self._timeout = timeout_seconds or settings.vector_store_timeout_seconds
        self._client: Optional[MilvusClient] = None
        self._initialized = False

    @property
    def dimension(self) -> int:
        return self._dimension

    async def initialize(self) -> None:
        """Connect and create the collection if it does not exist."""
        if self._initialized:
            return

        if not self._uri:
            raise VectorStoreException("ZILLIZ_URI not configured")

        try:
            self._client = MilvusClient(uri=self._uri, token=self._token)

            exists = await asyncio.to_thread(
                self._client.has_collection,
                self._collection_name,
                timeout=self._timeout
            )
            if not exists:
                await asyncio.to_thread(
                    self._client.create_collection,
                    collection_name=self._collection_name,
                    dimension=self._dimension,
                    primary_field_name="id",
                    id_type="string",
                    max_length=128,
                    vector_field_name="vector",
                    metric_type="COSINE",
                    auto_id=False,
                    enable_dynamic_field=True,
                    timeout=self._timeout
                )

            self._initialized = True

        except Exception as e:
            raise VectorStoreException(f"Failed to initialize Milvus: {str(e)}")

    async def get_document_count(self) -> int:
        """Get number of vectors in the collection."""
        if not self._initialized:
            await self.initialize()

        try:
            stats = await asyncio.to_thread(
                self._client.get_collection_stats,
                self._collection_name,
                timeout=self._timeout
            )
            return int(stats.get("row_count", 0))
        except Exception as e:
            raise VectorStoreException(f"Failed to count vectors: {str(e)}")

    async def add_documents(self, documents: List[VectorRecord]) -> None:
        """
        Insert vectors with their metadata.

        Raises:
            VectorStoreException: If a vector has the wrong dimension or
                the insert fails
        """
        if not self._initialized:
            await self.initialize()

        data = []
        for doc in documents:
            if len(doc.embedding) != self._dimension:
                raise VectorStoreException(
                    f"Vector {doc.id} has dimension {len(doc.embedding)}, "
                    f"collection expects {self._dimension}"
                )
            row = {"id": doc.id, "vector": doc.embedding}
            for key in METADATA_FIELDS:
                row[key] = doc.metadata.get(key, "")
            data.append(row)

        try:
            await asyncio.to_thread(
                self._client.insert,
                collection_name=self._collection_name,
                data=data,
                timeout=self._timeout
            )
        except Exception as e:
            raise VectorStoreException(f"Failed to add vectors: {str(e)}")

    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 3
    ) -> List[SearchResult]:
        """
        Search for the nearest stored vectors.

        Returns:
            SearchResult list ordered by descending cosine score

        Raises:
            VectorStoreException: If the query vector is invalid or search fails
        """
        if not self._initialized:
            await self.initialize()

        if len(query_embedding) != self._dimension:
            raise VectorStoreException(
                f"Query vector has dimension {len(query_embedding)}, "
                f"collection expects {self._dimension}"
            )

        try:
            results = await asyncio.to_thread(
                self._client.search,
                collection_name=self._collection_name,
                data=[query_embedding],
                limit=top_k,
                output_fields=METADATA_FIELDS,
                search_params={"metric_type": "COSINE"},
                timeout=self._timeout
            )
        except Exception as e:
            raise VectorStoreException(f"Search failed: {str(e)}")

        formatted_results = []
        if results and len(results) > 0:
            for hit in results[0]:
                entity = hit.get("entity", {}) or {}
                formatted_results.append(SearchResult(
                    id=str(hit.get("id")),
                    score=float(hit.get("distance", 0.0)),
                    metadata={key: entity.get(key) for key in METADATA_FIELDS if key in entity}
                ))

        formatted_results.sort(key=lambda r: r.score, reverse=True)
        return formatted_results[:top_k]
