"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="feedback-resolver", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/support",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== LLM Provider ==========
    llm_provider: str = Field(
        default="zai",
        description="Inference provider: zai, openai or mock"
    )
    zai_api_key: Optional[str] = Field(
        default=None,
        description="Z.AI API key"
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI (or compatible) API key"
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for an OpenAI-compatible endpoint"
    )
    llm_model: str = Field(
        default="glm-4.7",
        description="Model used for classification"
    )
    embedding_model: str = Field(
        default="embedding-2",
        description="Model used for complaint embeddings"
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for classification",
        ge=0.0,
        le=1.0
    )
    llm_max_tokens: int = Field(
        default=200,
        description="Max tokens for the classification response",
        ge=1,
        le=8000
    )
    inference_timeout_seconds: float = Field(
        default=20.0,
        description="Timeout for classification calls",
        gt=0
    )
    embedding_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for embedding calls",
        gt=0
    )

    # ========== Zilliz Cloud (Managed Milvus) ==========
    zilliz_uri: str = Field(
        default="",
        description="Milvus / Zilliz Cloud cluster URI"
    )
    zilliz_api_key: str = Field(
        default="",
        description="Milvus / Zilliz Cloud API key"
    )
    milvus_collection_name: str = Field(
        default="complaint_embeddings",
        description="Milvus collection holding complaint embeddings"
    )
    embedding_dimension: int = Field(
        default=1024,
        description="Embedding vector dimension (must match the collection)",
        ge=8
    )
    vector_store_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for vector store calls",
        gt=0
    )

    # ========== Resolution Policy ==========
    similarity_threshold: float = Field(
        default=0.7,
        description="Minimum (exclusive) cosine score for reusing a past solution",
        ge=-1.0,
        le=1.0
    )
    similarity_top_k: int = Field(
        default=3,
        description="Number of similar complaints retrieved per request",
        ge=1,
        le=20
    )
    text_snippet_length: int = Field(
        default=500,
        description="Characters of complaint text kept in embedding metadata",
        ge=1
    )
    stock_reply_template: str = Field(
        default=(
            'Thank you for contacting support. We have received your message '
            'regarding "{normalized_key}" and will get back to you soon.'
        ),
        description="Reply used when no solution applies"
    )
    reply_subject: str = Field(
        default="Re: Your Support Request",
        description="Subject line of outgoing replies"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    # ========== Grafana OTLP Metrics ==========
    grafana_host: Optional[str] = Field(
        default=None,
        description="Grafana OTLP gateway URL"
    )
    grafana_api_key: Optional[str] = Field(
        default=None,
        description="Grafana API key for OTLP authentication"
    )
    grafana_instance_id: Optional[str] = Field(
        default=None,
        description="Grafana instance ID for OTLP authentication"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Ensure the inference provider is supported."""
        allowed = {"zai", "openai", "mock"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v

    @field_validator("stock_reply_template")
    @classmethod
    def validate_stock_reply_template(cls, v: str) -> str:
        """The stock reply must interpolate the category."""
        if "{normalized_key}" not in v:
            raise ValueError("stock_reply_template must contain {normalized_key}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class NormalizedKey(str):
    """Canonical support categories."""
    BILLING = "billing"
    TECHNICAL = "technical"
    GENERAL = "general"


class Sentiment(str):
    """Customer sentiment labels."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class AnswerType(str):
    """How a complaint was answered."""
    KNOWN_SOLUTION = "KNOWN_SOLUTION"
    STOCK = "STOCK"


class ResolutionTier(str):
    """Which step of the resolution policy produced the answer."""
    EXACT_MATCH = "exact_match"
    SIMILAR_MATCH = "similar_match"
    MATCH_WITHOUT_SOLUTION = "match_without_solution"
    NO_MATCH = "no_match"


# ========== Lists for validation ==========

VALID_NORMALIZED_KEYS = [
    NormalizedKey.BILLING, NormalizedKey.TECHNICAL, NormalizedKey.GENERAL
]
VALID_SENTIMENTS = [
    Sentiment.POSITIVE, Sentiment.NEUTRAL, Sentiment.NEGATIVE
]

DEFAULT_NORMALIZED_KEY = NormalizedKey.GENERAL
DEFAULT_SENTIMENT = Sentiment.NEUTRAL
