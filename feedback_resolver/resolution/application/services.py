"""
Resolution Application Services
================================

Application services for the complaint resolution pipeline.

Classification and embedding/similarity run concurrently; the
ResolutionEngine waits for both, applies the tiered answer policy,
persists the complaint and stores its embedding for future lookups.

Only ValidationException and RepositoryException leave this module.
Inference and vector store failures degrade to defaults or empty results.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Any

from feedback_resolver.config import AnswerType, ResolutionTier, Settings
from feedback_resolver.core import LLMException, VectorStoreException, ValidationException
from feedback_resolver.resolution.domain import (
    ClassificationResult,
    ClassificationPromptBuilder,
    ClassificationResponseParser,
    ComplaintRecord,
    EmbeddingVector,
    ResolutionDecision,
    ResolutionOutcome,
    SimilarityMatch,
    SolutionRecord,
    build_embedding_id,
    build_embedding_metadata,
    stock_reply,
)
from feedback_resolver.shared.infrastructure.logging import get_logger


# ========== Repository Interfaces ==========

class IComplaintRepository(ABC):
    """Append-only store of processed complaints."""

    @abstractmethod
    async def create(self, record: ComplaintRecord) -> ComplaintRecord:
        """Insert a complaint and return it with its assigned id."""


class ISolutionRepository(ABC):
    """Curated solutions keyed by category."""

    @abstractmethod
    async def get_by_key(self, normalized_key: str) -> Optional[SolutionRecord]:
        """Get the solution for a category, if one exists."""


# ========== External Service Interfaces ==========

class ILLMClient(ABC):
    """Interface for classification inference."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float,
        max_tokens: int,
        operation: str = "chat_completion"
    ) -> Any:
        """Generate chat completion (object with content and model)."""


class IEmbeddingClient(ABC):
    """Interface for embedding inference."""

    @abstractmethod
    async def generate_embedding(self, text: str) -> Any:
        """Generate embedding (object with embedding and model)."""


class IVectorIndex(ABC):
    """Interface for the similarity index."""

    @abstractmethod
    async def search(self, vector: List[float], top_k: int) -> List[SimilarityMatch]:
        """Nearest stored vectors."""

    @abstractmethod
    async def add(self, vector_id: str, vector: List[float], metadata: dict) -> None:
        """Store a vector."""


class IEmailSender(ABC):
    """Delivers the reply to the customer."""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> bool:
        """Send a reply; True when it was handed off."""


# ========== Policy ==========

@dataclass(frozen=True)
class ResolutionPolicy:
    """Tunables of the resolution pipeline."""
    similarity_threshold: float = 0.7
    top_k: int = 3
    snippet_length: int = 500
    stock_reply_template: str = (
        'Thank you for contacting support. We have received your message '
        'regarding "{normalized_key}" and will get back to you soon.'
    )
    reply_subject: str = "Re: Your Support Request"

    @classmethod
    def from_settings(cls, config: Settings) -> "ResolutionPolicy":
        return cls(
            similarity_threshold=config.similarity_threshold,
            top_k=config.similarity_top_k,
            snippet_length=config.text_snippet_length,
            stock_reply_template=config.stock_reply_template,
            reply_subject=config.reply_subject,
        )


# ========== Application Services ==========

class ClassificationService:
    """
    Classifies complaint text into a category and sentiment.

    Always returns an in-set result: transport failures, timeouts and
    unparseable responses fall back to general / neutral.
    """

    def __init__(
        self,
        llm_client: ILLMClient,
        temperature: float = 0.3,
        max_tokens: int = 200,
        timeout_seconds: float = 20.0,
        logger: Optional[logging.Logger] = None
    ):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_seconds
        self._logger = logger or get_logger(__name__)

    async def classify(self, text: str) -> ClassificationResult:
        """
        Classify a complaint.

        Args:
            text: Complaint text

        Returns:
            ClassificationResult with in-set normalized_key and sentiment
        """
        start_time = time.perf_counter()
        messages = ClassificationPromptBuilder.build_messages(text)

        try:
            response = await asyncio.wait_for(
                self._llm.chat_completion(
                    messages=messages,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                    operation="classification"
                ),
                timeout=self._timeout
            )
        except (LLMException, asyncio.TimeoutError) as e:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            self._logger.warning(
                "Classification unavailable, using defaults",
                extra={"error": str(e) or type(e).__name__, "latency_ms": latency_ms}
            )
            return ClassificationResult.default(latency_ms=latency_ms)

        normalized_key, sentiment, source = ClassificationResponseParser.parse(
            getattr(response, "content", None)
        )
        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if source != "json":
            self._logger.info(
                "Classification response was not clean JSON",
                extra={"parse_source": source, "response_preview": str(getattr(response, "content", ""))[:200]}
            )

        return ClassificationResult(
            normalized_key=normalized_key,
            sentiment=sentiment,
            source=source,
            model_used=getattr(response, "model", "unknown"),
            latency_ms=latency_ms
        )


class EmbeddingService:
    """
    Turns complaint text into a vector.

    Returns the empty sentinel instead of raising: on service errors,
    timeouts, empty or non-numeric payloads, and vectors whose length
    differs from the index dimension.
    """

    def __init__(
        self,
        embedding_client: IEmbeddingClient,
        dimension: int,
        timeout_seconds: float = 10.0,
        logger: Optional[logging.Logger] = None
    ):
        self._client = embedding_client
        self._dimension = dimension
        self._timeout = timeout_seconds
        self._logger = logger or get_logger(__name__)

    async def embed(self, text: str) -> EmbeddingVector:
        try:
            result = await asyncio.wait_for(
                self._client.generate_embedding(text),
                timeout=self._timeout
            )
        except (LLMException, asyncio.TimeoutError) as e:
            self._logger.warning(
                "Embedding unavailable",
                extra={"error": str(e) or type(e).__name__}
            )
            return EmbeddingVector.empty()

        raw = getattr(result, "embedding", None)
        try:
            values = [float(v) for v in raw or []]
        except (TypeError, ValueError):
            self._logger.warning("Embedding response was not numeric")
            return EmbeddingVector.empty()

        if not values:
            self._logger.warning("Embedding response was empty")
            return EmbeddingVector.empty()

        if len(values) != self._dimension:
            self._logger.warning(
                "Embedding dimension mismatch",
                extra={"expected": self._dimension, "received": len(values)}
            )
            return EmbeddingVector.empty()

        return EmbeddingVector(values=values, model=getattr(result, "model", ""))


class SimilarityIndexService:
    """
    Query and insert wrapper around the vector index.

    query returns an empty list on any failure; insert reports success
    as a boolean and never raises.
    """

    def __init__(
        self,
        index: IVectorIndex,
        timeout_seconds: float = 5.0,
        logger: Optional[logging.Logger] = None
    ):
        self._index = index
        self._timeout = timeout_seconds
        self._logger = logger or get_logger(__name__)

    async def query(self, vector: EmbeddingVector, top_k: int) -> List[SimilarityMatch]:
        """
        Nearest stored complaints by cosine score.

        Returns:
            At most top_k matches ordered by descending score
        """
        if vector.is_empty:
            return []

        try:
            matches = await asyncio.wait_for(
                self._index.search(vector.values, top_k),
                timeout=self._timeout
            )
        except (VectorStoreException, asyncio.TimeoutError) as e:
            self._logger.warning(
                "Similarity search degraded",
                extra={"error": str(e) or type(e).__name__}
            )
            return []

        return sorted(matches, key=lambda m: m.score, reverse=True)[:top_k]

    async def insert(self, vector_id: str, vector: EmbeddingVector, metadata: dict) -> bool:
        """Store a vector; False when it could not be stored."""
        if vector.is_empty:
            return False

        try:
            await asyncio.wait_for(
                self._index.add(vector_id, vector.values, metadata),
                timeout=self._timeout
            )
        except (VectorStoreException, asyncio.TimeoutError) as e:
            self._logger.error(
                "Failed to store complaint embedding",
                extra={"vector_id": vector_id, "error": str(e) or type(e).__name__}
            )
            return False

        return True


class ResolutionEngine:
    """
    Orchestrates one complaint through the pipeline.

    Answer tiers, in order:
    1. a curated solution for the complaint's own category
    2. a curated solution for the category of the most similar past
       complaint, when that match scores above the threshold and was
       itself answered with a known solution
    3. a match exists but cannot be reused: stock reply
    4. no match: stock reply
    """

    def __init__(
        self,
        classifier: ClassificationService,
        embedder: EmbeddingService,
        similarity_index: SimilarityIndexService,
        solutions: ISolutionRepository,
        complaints: IComplaintRepository,
        email_sender: IEmailSender,
        policy: Optional[ResolutionPolicy] = None,
        metrics_exporter: Optional[Any] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        logger: Optional[logging.Logger] = None
    ):
        self._classifier = classifier
        self._embedder = embedder
        self._similarity = similarity_index
        self._solutions = solutions
        self._complaints = complaints
        self._email_sender = email_sender
        self._policy = policy or ResolutionPolicy()
        self._metrics = metrics_exporter
        self._clock = clock
        self._logger = logger or get_logger(__name__)

    @property
    def policy(self) -> ResolutionPolicy:
        return self._policy

    async def process(self, customer_email: str, text: str) -> ResolutionOutcome:
        """
        Classify, resolve, reply to and persist one complaint.

        Raises:
            ValidationException: If customer_email or text is empty
            RepositoryException: If a store read or the complaint insert fails
        """
        missing = [
            name for name, value in (("customer_email", customer_email), ("text", text))
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationException(
                "Missing required fields: customer_email and text",
                fields=missing
            )

        classification, (embedding, matches) = await asyncio.gather(
            self._classifier.classify(text),
            self._retrieve(text)
        )

        decision = await self.resolve(classification.normalized_key, matches)

        email_sent = await self._email_sender.send(
            to=customer_email,
            subject=self._policy.reply_subject,
            body=decision.email_response
        )

        record = await self._complaints.create(ComplaintRecord(
            id=None,
            customer_email=customer_email,
            text=text,
            sentiment=classification.sentiment,
            normalized_key=classification.normalized_key,
            answer_type=decision.answer_type,
            answered=True
        ))

        embedding_stored = False
        if not embedding.is_empty:
            stored_at = self._clock()
            embedding_stored = await self._similarity.insert(
                build_embedding_id(record.id, stored_at),
                embedding,
                build_embedding_metadata(record, stored_at, self._policy.snippet_length)
            )

        self._logger.info(
            "Complaint resolved",
            extra={
                "complaint_id": record.id,
                "normalized_key": classification.normalized_key,
                "sentiment": classification.sentiment,
                "classification_source": classification.source,
                "answer_type": decision.answer_type,
                "resolution_tier": decision.tier,
                "matches": len(matches),
                "top_score": matches[0].score if matches else None,
                "embedding_stored": embedding_stored
            }
        )

        if self._metrics is not None and self._metrics.is_enabled():
            await self._metrics.export_resolution_metrics(
                answer_type=decision.answer_type,
                resolution_tier=decision.tier,
                normalized_key=classification.normalized_key
            )

        return ResolutionOutcome(
            complaint_id=record.id,
            normalized_key=classification.normalized_key,
            sentiment=classification.sentiment,
            answer_type=decision.answer_type,
            email_response=decision.email_response,
            email_sent=email_sent,
            resolution_tier=decision.tier,
            similar_matches=matches,
            embedding_stored=embedding_stored
        )

    async def resolve(
        self,
        normalized_key: str,
        matches: List[SimilarityMatch]
    ) -> ResolutionDecision:
        """
        Apply the answer tiers to a classified complaint.

        Args:
            normalized_key: The complaint's category
            matches: Similar past complaints, best first

        Returns:
            ResolutionDecision
        """
        solution = await self._solutions.get_by_key(normalized_key)
        if solution is not None and solution.is_usable:
            return ResolutionDecision(
                answer_type=AnswerType.KNOWN_SOLUTION,
                email_response=solution.solution_text,
                tier=ResolutionTier.EXACT_MATCH,
                solution_key=normalized_key
            )

        best_match = matches[0] if matches else None

        if best_match is not None:
            if (
                best_match.score > self._policy.similarity_threshold
                and best_match.answer_type == AnswerType.KNOWN_SOLUTION
                and best_match.normalized_key
            ):
                # The matched complaint's category, not the current one
                matched_solution = await self._solutions.get_by_key(best_match.normalized_key)
                if matched_solution is not None and matched_solution.is_usable:
                    return ResolutionDecision(
                        answer_type=AnswerType.KNOWN_SOLUTION,
                        email_response=matched_solution.solution_text,
                        tier=ResolutionTier.SIMILAR_MATCH,
                        solution_key=best_match.normalized_key
                    )

            return ResolutionDecision(
                answer_type=AnswerType.STOCK,
                email_response=stock_reply(self._policy.stock_reply_template, normalized_key),
                tier=ResolutionTier.MATCH_WITHOUT_SOLUTION
            )

        return ResolutionDecision(
            answer_type=AnswerType.STOCK,
            email_response=stock_reply(self._policy.stock_reply_template, normalized_key),
            tier=ResolutionTier.NO_MATCH
        )

    async def _retrieve(self, text: str):
        embedding = await self._embedder.embed(text)
        if embedding.is_empty:
            return embedding, []
        matches = await self._similarity.query(embedding, self._policy.top_k)
        return embedding, matches
