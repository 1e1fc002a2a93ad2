"""
Resolution Application Layer
=============================

Application layer for the complaint resolution module.

Contains:
- Services: classification, embedding, similarity and the resolution engine
- DTOs: Data transfer objects for API and queue payloads
"""

from feedback_resolver.resolution.application.dto import (
    ComplaintRequest,
    ComplaintResponse,
    ResolutionInfo,
    SimilarMatchInfo,
    ErrorResponse,
    parse_complaint_payload,
)
from feedback_resolver.resolution.application.services import (
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

__all__ = [
    # DTOs
    "ComplaintRequest",
    "ComplaintResponse",
    "ResolutionInfo",
    "SimilarMatchInfo",
    "ErrorResponse",
    "parse_complaint_payload",
    # Services
    "ClassificationService",
    "EmbeddingService",
    "SimilarityIndexService",
    "ResolutionEngine",
    "ResolutionPolicy",
    # Interfaces
    "IComplaintRepository",
    "ISolutionRepository",
    "ILLMClient",
    "IEmbeddingClient",
    "IVectorIndex",
    "IEmailSender",
]
