"""
Resolution Domain Layer
=======================

Domain layer for the complaint resolution module.

Contains:
- Entities: ClassificationResult, EmbeddingVector, SimilarityMatch,
  ComplaintRecord, SolutionRecord, ResolutionDecision, ResolutionOutcome
- Prompt building and total response parsing for classification

This layer is framework-agnostic and contains pure business logic.
"""

from feedback_resolver.resolution.domain.entities import (
    ClassificationResult,
    EmbeddingVector,
    SimilarityMatch,
    ComplaintRecord,
    SolutionRecord,
    ResolutionDecision,
    ResolutionOutcome,
    ClassificationPromptBuilder,
    ClassificationResponseParser,
    build_embedding_id,
    build_embedding_metadata,
    coerce_normalized_key,
    coerce_sentiment,
    stock_reply,
)

__all__ = [
    "ClassificationResult",
    "EmbeddingVector",
    "SimilarityMatch",
    "ComplaintRecord",
    "SolutionRecord",
    "ResolutionDecision",
    "ResolutionOutcome",
    "ClassificationPromptBuilder",
    "ClassificationResponseParser",
    "build_embedding_id",
    "build_embedding_metadata",
    "coerce_normalized_key",
    "coerce_sentiment",
    "stock_reply",
]
