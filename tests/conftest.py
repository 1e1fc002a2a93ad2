"""Pytest configuration and shared fixtures.

Fakes implement the application-layer interfaces so services can be
exercised without a database, an inference provider or Milvus.
"""

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from feedback_resolver.config import AnswerType
from feedback_resolver.core import LLMException, VectorStoreException
from feedback_resolver.resolution.application import (
    ClassificationService,
    EmbeddingService,
    SimilarityIndexService,
    ResolutionEngine,
    ResolutionPolicy,
    IComplaintRepository,
    ISolutionRepository,
    ILLMClient,
    IEmbeddingClient,
    IVectorIndex,
    IEmailSender,
)
from feedback_resolver.resolution.domain import ComplaintRecord, SimilarityMatch, SolutionRecord


DIMENSION = 4
FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeLLMClient(ILLMClient):
    """Returns a canned response, or raises when `error` is set."""

    def __init__(self, content: Optional[str] = None, error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[dict] = []

    async def chat_completion(self, messages, temperature, max_tokens, operation="chat_completion"):
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "operation": operation,
        })
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content, model="fake-model")


class FakeEmbeddingClient(IEmbeddingClient):
    def __init__(self, vector: Optional[list] = None, error: Optional[Exception] = None):
        self.vector = vector if vector is not None else [0.5] * DIMENSION
        self.error = error
        self.calls: List[str] = []

    async def generate_embedding(self, text: str):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(embedding=self.vector, model="fake-embedding")


class FakeVectorIndex(IVectorIndex):
    """Stores added vectors; search returns the configured matches."""

    def __init__(
        self,
        matches: Optional[List[SimilarityMatch]] = None,
        search_error: Optional[Exception] = None,
        add_error: Optional[Exception] = None
    ):
        self.matches = matches or []
        self.search_error = search_error
        self.add_error = add_error
        self.searches: List[tuple] = []
        self.added: Dict[str, dict] = {}

    async def search(self, vector, top_k):
        self.searches.append((vector, top_k))
        if self.search_error is not None:
            raise self.search_error
        return list(self.matches)

    async def add(self, vector_id, vector, metadata):
        if self.add_error is not None:
            raise self.add_error
        self.added[vector_id] = {"vector": vector, "metadata": metadata}


class InMemorySolutionRepository(ISolutionRepository):
    def __init__(self, solutions: Optional[Dict[str, str]] = None, error: Optional[Exception] = None):
        self.solutions = dict(solutions or {})
        self.error = error
        self.lookups: List[str] = []

    async def get_by_key(self, normalized_key: str) -> Optional[SolutionRecord]:
        self.lookups.append(normalized_key)
        if self.error is not None:
            raise self.error
        if normalized_key not in self.solutions:
            return None
        return SolutionRecord(id=1, normalized_key=normalized_key, solution_text=self.solutions[normalized_key])


class InMemoryComplaintRepository(IComplaintRepository):
    def __init__(self, error: Optional[Exception] = None):
        self.records: List[ComplaintRecord] = []
        self.error = error

    async def create(self, record: ComplaintRecord) -> ComplaintRecord:
        if self.error is not None:
            raise self.error
        record.id = len(self.records) + 1
        record.created_at = FIXED_NOW
        self.records.append(record)
        return record


class RecordingEmailSender(IEmailSender):
    def __init__(self, result: bool = True):
        self.result = result
        self.sent: List[dict] = []

    async def send(self, to: str, subject: str, body: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "body": body})
        return self.result


def classification_json(normalized_key: str, sentiment: str) -> str:
    return json.dumps({"normalized_key": normalized_key, "sentiment": sentiment})


def match(score: float, normalized_key: str = "billing", answer_type: str = AnswerType.KNOWN_SOLUTION,
          sentiment: str = "negative", match_id: str = "complaint-1-1700000000000") -> SimilarityMatch:
    return SimilarityMatch(
        id=match_id,
        score=score,
        metadata={
            "normalized_key": normalized_key,
            "answer_type": answer_type,
            "sentiment": sentiment,
        },
    )


class PipelineHarness:
    """Bundles an engine with the fakes behind it."""

    def __init__(
        self,
        llm: FakeLLMClient,
        embeddings: FakeEmbeddingClient,
        index: FakeVectorIndex,
        solutions: InMemorySolutionRepository,
        complaints: InMemoryComplaintRepository,
        email_sender: RecordingEmailSender,
        policy: Optional[ResolutionPolicy] = None
    ):
        self.llm = llm
        self.embeddings = embeddings
        self.index = index
        self.solutions = solutions
        self.complaints = complaints
        self.email_sender = email_sender
        self.engine = ResolutionEngine(
            classifier=ClassificationService(llm, timeout_seconds=1.0),
            embedder=EmbeddingService(embeddings, dimension=DIMENSION, timeout_seconds=1.0),
            similarity_index=SimilarityIndexService(index, timeout_seconds=1.0),
            solutions=solutions,
            complaints=complaints,
            email_sender=email_sender,
            policy=policy or ResolutionPolicy(),
            clock=lambda: FIXED_NOW,
        )


@pytest.fixture
def make_pipeline():
    """Factory for a pipeline over in-memory fakes."""

    def _make(
        classification: Optional[str] = None,
        llm_error: Optional[Exception] = None,
        vector: Optional[list] = None,
        embedding_error: Optional[Exception] = None,
        matches: Optional[List[SimilarityMatch]] = None,
        search_error: Optional[Exception] = None,
        add_error: Optional[Exception] = None,
        solutions: Optional[Dict[str, str]] = None,
        solution_error: Optional[Exception] = None,
        complaint_error: Optional[Exception] = None,
        policy: Optional[ResolutionPolicy] = None
    ) -> PipelineHarness:
        return PipelineHarness(
            llm=FakeLLMClient(
                content=classification if classification is not None else classification_json("general", "neutral"),
                error=llm_error,
            ),
            embeddings=FakeEmbeddingClient(vector=vector, error=embedding_error),
            index=FakeVectorIndex(matches=matches, search_error=search_error, add_error=add_error),
            solutions=InMemorySolutionRepository(solutions, error=solution_error),
            complaints=InMemoryComplaintRepository(error=complaint_error),
            email_sender=RecordingEmailSender(),
            policy=policy,
        )

    return _make


@pytest.fixture
def llm_down() -> LLMException:
    return LLMException("connection refused")


@pytest.fixture
def index_down() -> VectorStoreException:
    return VectorStoreException("collection unavailable")


@pytest.fixture
def make_match():
    return match


@pytest.fixture
def make_classification():
    return classification_json


@pytest.fixture
def fakes() -> SimpleNamespace:
    """The fake collaborator classes, for tests that build services directly."""
    return SimpleNamespace(
        LLMClient=FakeLLMClient,
        EmbeddingClient=FakeEmbeddingClient,
        VectorIndex=FakeVectorIndex,
        SolutionRepository=InMemorySolutionRepository,
        ComplaintRepository=InMemoryComplaintRepository,
        EmailSender=RecordingEmailSender,
        dimension=DIMENSION,
        now=FIXED_NOW,
    )
