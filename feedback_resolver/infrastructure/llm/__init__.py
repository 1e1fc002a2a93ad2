"""
LLM Client Infrastructure
==========================

Wrapper for inference providers (Z.AI, OpenAI-compatible) providing a clean
interface for the two calls the pipeline makes: a chat completion for
classification and an embedding for similarity search.

The domain layer depends on ILLMClient, not on a concrete provider.
"""

import asyncio
import hashlib
import json
import math
import random
import time
from typing import List, Optional
from abc import ABC, abstractmethod

from openai import AsyncOpenAI
from zai import ZaiClient

from feedback_resolver.config import settings, Settings
from feedback_resolver.core import LLMException, ConfigurationException
from feedback_resolver.shared.infrastructure.grafana import get_grafana_exporter


class EmbeddingResult:
    """Result of an embedding generation."""

    def __init__(self, embedding: List[float], model: str):
        self.embedding = embedding
        self.model = model
        self.dimension = len(embedding)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the methods the pipeline needs are defined.
    """

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate embedding for text."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


async def _export_metrics(model: str, operation: str, start_time: float, success: bool) -> None:
    exporter = get_grafana_exporter()
    if exporter and exporter.is_enabled():
        await exporter.export_inference_metrics(
            model=model,
            operation=operation,
            latency_ms=int((time.perf_counter() - start_time) * 1000),
            success=success
        )


def _first_embedding(response) -> List[float]:
    data = getattr(response, "data", None) or []
    if not data or not getattr(data[0], "embedding", None):
        raise LLMException("Embedding response contained no vector")
    return list(data[0].embedding)


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous; calls run in a worker thread.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using the Z.AI embedding model.

        Raises:
            LLMException: If embedding generation fails
        """
        start_time = time.perf_counter()
        try:
            response = await asyncio.to_thread(
                self._client.embeddings.create,
                model=self._embedding_model,
                input=text
            )
            result = EmbeddingResult(
                embedding=_first_embedding(response),
                model=self._embedding_model
            )
        except LLMException:
            await _export_metrics(self._embedding_model, "embedding", start_time, False)
            raise
        except Exception as e:
            await _export_metrics(self._embedding_model, "embedding", start_time, False)
            raise LLMException(f"Embedding generation failed: {str(e)}")

        await _export_metrics(self._embedding_model, "embedding", start_time, True)
        return result

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using GLM.

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            await _export_metrics(self._model, operation, start_time, False)
            raise LLMException(f"Chat completion failed: {str(e)}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        await _export_metrics(self._model, operation, start_time, True)

        # Z.AI doesn't return token usage, so we estimate
        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=len(str(messages)),
            completion_tokens=len(content),
            latency_ms=latency_ms
        )


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation.

    Works with any OpenAI-compatible endpoint via openai_base_url.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=base_url or settings.openai_base_url
        )
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using the OpenAI embedding model.

        Raises:
            LLMException: If embedding generation fails
        """
        start_time = time.perf_counter()
        try:
            response = await self._client.embeddings.create(
                model=self._embedding_model,
                input=text
            )
            result = EmbeddingResult(
                embedding=_first_embedding(response),
                model=self._embedding_model
            )
        except LLMException:
            await _export_metrics(self._embedding_model, "embedding", start_time, False)
            raise
        except Exception as e:
            await _export_metrics(self._embedding_model, "embedding", start_time, False)
            raise LLMException(f"Embedding generation failed: {str(e)}")

        await _export_metrics(self._embedding_model, "embedding", start_time, True)
        return result

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion.

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            await _export_metrics(self._model, operation, start_time, False)
            raise LLMException(f"Chat completion failed: {str(e)}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        await _export_metrics(self._model, operation, start_time, True)

        usage = response.usage
        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local development and tests.

    Returns predictable responses without calling external APIs.
    """

    BILLING_WORDS = ("bill", "charge", "invoice", "refund", "payment", "price")
    TECHNICAL_WORDS = ("error", "crash", "bug", "login", "broken", "slow", "install")
    NEGATIVE_WORDS = ("not", "never", "angry", "bad", "terrible", "overcharged", "broken")
    POSITIVE_WORDS = ("thanks", "thank", "great", "love", "excellent", "happy")

    def __init__(self, dimension: Optional[int] = None):
        self._dimension = dimension or settings.embedding_dimension

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Deterministic unit vector seeded from the text hash."""
        seed = int(hashlib.sha256(text.lower().encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        vector = [rng.uniform(-1, 1) for _ in range(self._dimension)]
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return EmbeddingResult(
            embedding=[v / norm for v in vector],
            model="mock-embedding"
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 200,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Keyword classification wrapped in the JSON shape the prompt asks for."""
        text = str(messages[-1].get("content", "")).lower() if messages else ""

        if any(word in text for word in self.BILLING_WORDS):
            normalized_key = "billing"
        elif any(word in text for word in self.TECHNICAL_WORDS):
            normalized_key = "technical"
        else:
            normalized_key = "general"

        if any(word in text for word in self.NEGATIVE_WORDS):
            sentiment = "negative"
        elif any(word in text for word in self.POSITIVE_WORDS):
            sentiment = "positive"
        else:
            sentiment = "neutral"

        content = json.dumps({"normalized_key": normalized_key, "sentiment": sentiment})
        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=1
        )


def create_llm_client(config: Optional[Settings] = None) -> ILLMClient:
    """
    Build the inference client selected by llm_provider.

    Raises:
        ConfigurationException: If the selected provider lacks credentials
    """
    config = config or settings
    if config.llm_provider == "mock":
        return MockLLMClient(config.embedding_dimension)
    if config.llm_provider == "openai":
        return OpenAILLMClient(config.openai_api_key, config.openai_base_url)
    return ZAIILLMClient(config.zai_api_key)
