"""
Resolution External Service Adapters
=====================================

Adapters for external services (LLM, vector store, email) used by the
resolution module.

Implements the interfaces defined in the application layer using concrete
external service implementations.
"""

from typing import List, Any, Optional

from feedback_resolver.core import VectorStoreException
from feedback_resolver.infrastructure.llm import ILLMClient as InferenceClient
from feedback_resolver.infrastructure.vectorstore import IVectorStore, VectorRecord
from feedback_resolver.resolution.application import (
    ILLMClient,
    IEmbeddingClient,
    IVectorIndex,
    IEmailSender,
)
from feedback_resolver.resolution.domain import SimilarityMatch
from feedback_resolver.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class LLMClientAdapter(ILLMClient, IEmbeddingClient):
    """
    Adapter that wraps the infrastructure LLM client.

    One provider client serves both classification and embeddings.
    """

    def __init__(self, client: InferenceClient):
        self._client = client

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion"
    ) -> Any:
        """Generate chat completion."""
        return await self._client.chat_completion(messages, temperature, max_tokens, operation)

    async def generate_embedding(self, text: str) -> Any:
        """Generate embedding."""
        return await self._client.generate_embedding(text)


class VectorIndexAdapter(IVectorIndex):
    """
    Adapter that wraps the infrastructure vector store.

    Converts store search results into domain SimilarityMatch objects.
    """

    def __init__(self, store: IVectorStore):
        self._store = store

    async def search(self, vector: List[float], top_k: int) -> List[SimilarityMatch]:
        results = await self._store.search(vector, top_k)
        return [
            SimilarityMatch(id=r.id, score=r.score, metadata=dict(r.metadata or {}))
            for r in results
        ]

    async def add(self, vector_id: str, vector: List[float], metadata: dict) -> None:
        await self._store.add_documents([
            VectorRecord(id=vector_id, embedding=vector, metadata=metadata)
        ])


class UnavailableVectorIndex(IVectorIndex):
    """Stands in when the vector store could not be initialized."""

    def __init__(self, reason: Optional[str] = None):
        self._reason = reason or "vector store not configured"

    async def search(self, vector: List[float], top_k: int) -> List[SimilarityMatch]:
        raise VectorStoreException(self._reason)

    async def add(self, vector_id: str, vector: List[float], metadata: dict) -> None:
        raise VectorStoreException(self._reason)


class LogEmailSender(IEmailSender):
    """
    Email sender that writes the outgoing reply to the structured log.

    The recipient address is masked by the log formatter.
    """

    async def send(self, to: str, subject: str, body: str) -> bool:
        logger.info(
            "Sending reply email",
            extra={
                "customer_email": to,
                "subject": subject,
                "body": body
            }
        )
        return True
