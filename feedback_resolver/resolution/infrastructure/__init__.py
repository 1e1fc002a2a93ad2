"""
Resolution Infrastructure Layer
================================

Infrastructure implementations for the complaint resolution module.

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
- External: External service adapters (LLM, Vector Store, Email)
- Factory: Pipeline wiring
"""

from feedback_resolver.resolution.infrastructure.models import ComplaintModel, SolutionModel
from feedback_resolver.resolution.infrastructure.repositories import (
    SQLAlchemyComplaintRepository,
    SQLAlchemySolutionRepository
)
from feedback_resolver.resolution.infrastructure.external import (
    LLMClientAdapter,
    VectorIndexAdapter,
    UnavailableVectorIndex,
    LogEmailSender
)
from feedback_resolver.resolution.infrastructure.factory import PipelineComponents

__all__ = [
    "ComplaintModel",
    "SolutionModel",
    "SQLAlchemyComplaintRepository",
    "SQLAlchemySolutionRepository",
    "LLMClientAdapter",
    "VectorIndexAdapter",
    "UnavailableVectorIndex",
    "LogEmailSender",
    "PipelineComponents",
]
