"""
Resolution Pipeline Factory
============================

Wires long-lived collaborators (inference client, vector index, metrics
exporter) with per-session repositories into a ResolutionEngine.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Any

from sqlalchemy.ext.asyncio import AsyncSession

from feedback_resolver.config import Settings, settings
from feedback_resolver.infrastructure.database import get_session_context
from feedback_resolver.resolution.application import (
    ClassificationService,
    EmbeddingService,
    SimilarityIndexService,
    ResolutionEngine,
    ResolutionPolicy,
    IEmailSender,
    IVectorIndex,
)
from feedback_resolver.resolution.infrastructure.external import LLMClientAdapter, LogEmailSender
from feedback_resolver.resolution.infrastructure.repositories import (
    SQLAlchemyComplaintRepository,
    SQLAlchemySolutionRepository,
)


class PipelineComponents:
    """Collaborators shared across requests; engines are built per session."""

    def __init__(
        self,
        llm_client: Any,
        vector_index: IVectorIndex,
        email_sender: Optional[IEmailSender] = None,
        metrics_exporter: Optional[Any] = None,
        config: Optional[Settings] = None
    ):
        config = config or settings
        adapter = LLMClientAdapter(llm_client)

        self.classifier = ClassificationService(
            adapter,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            timeout_seconds=config.inference_timeout_seconds
        )
        self.embedder = EmbeddingService(
            adapter,
            dimension=config.embedding_dimension,
            timeout_seconds=config.embedding_timeout_seconds
        )
        self.similarity_index = SimilarityIndexService(
            vector_index,
            timeout_seconds=config.vector_store_timeout_seconds
        )
        self.email_sender = email_sender or LogEmailSender()
        self.metrics_exporter = metrics_exporter
        self.policy = ResolutionPolicy.from_settings(config)

    def engine_for_session(self, session: AsyncSession) -> ResolutionEngine:
        return ResolutionEngine(
            classifier=self.classifier,
            embedder=self.embedder,
            similarity_index=self.similarity_index,
            solutions=SQLAlchemySolutionRepository(session),
            complaints=SQLAlchemyComplaintRepository(session),
            email_sender=self.email_sender,
            policy=self.policy,
            metrics_exporter=self.metrics_exporter
        )

    @asynccontextmanager
    async def session_engine(self) -> AsyncGenerator[ResolutionEngine, None]:
        """Engine bound to a fresh database session, for queue consumers."""
        async with get_session_context() as session:
            yield self.engine_for_session(session)
