"""
Feedback Resolver - Main Application
=====================================

Automatic first-line answers for customer support messages.

Modules:
- Resolution: classify a complaint, find similar past complaints, reply
- Analytics: aggregate counts over processed complaints

Clean Architecture Layers:
- Interfaces: FastAPI controllers, queue consumer
- Application: Services and DTOs
- Domain: Entities and business rules
- Infrastructure: Database, LLM, vector store
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from feedback_resolver.config import settings
from feedback_resolver.core import ApplicationException, ConfigurationException, VectorStoreException

# Infrastructure
from feedback_resolver.infrastructure.database import init_database, close_database, create_tables
from feedback_resolver.infrastructure.llm import create_llm_client, MockLLMClient
from feedback_resolver.infrastructure.vectorstore import MilvusVectorStore

# Resolution Module
from feedback_resolver.resolution.infrastructure import (
    PipelineComponents,
    VectorIndexAdapter,
    UnavailableVectorIndex,
)
from feedback_resolver.resolution.interfaces import router as resolution_router
from feedback_resolver.resolution.interfaces import ComplaintBatchConsumer

# Analytics Module
from feedback_resolver.analytics.interfaces import router as analytics_router

# Logging and metrics
from feedback_resolver.shared.infrastructure.logging import setup_logging, get_logger
from feedback_resolver.shared.infrastructure.grafana import init_grafana_exporter
from feedback_resolver.shared.api.middleware import (
    CorrelationIDMiddleware,
    TimingMiddleware,
    LoggingMiddleware,
    request_validation_handler,
    application_exception_handler,
    global_exception_handler,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Initialize LLM client
    4. Initialize vector store (degraded mode if unavailable)
    5. Initialize Grafana exporter
    6. Wire the resolution pipeline and queue consumer

    SHUTDOWN:
    1. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Feedback Resolver", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()
    app.state.database_ready = False
    try:
        await create_tables()
        app.state.database_ready = True
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    logger.info("Initializing LLM client", extra={"provider": settings.llm_provider})
    try:
        llm_client = create_llm_client(settings)
    except ConfigurationException as e:
        logger.warning(f"LLM client not configured, falling back to mock: {e.message}")
        llm_client = MockLLMClient(settings.embedding_dimension)

    logger.info("Initializing Milvus vector store")
    try:
        vector_store = MilvusVectorStore()
        await vector_store.initialize()
        vector_index = VectorIndexAdapter(vector_store)
        app.state.vector_store = vector_store
    except VectorStoreException as e:
        logger.warning(f"Vector store not available - similarity lookups disabled: {e.message}")
        vector_index = UnavailableVectorIndex(e.message)
        app.state.vector_store = None

    exporter = None
    if settings.grafana_host and settings.grafana_api_key and settings.grafana_instance_id:
        exporter = init_grafana_exporter(
            host=settings.grafana_host,
            api_key=settings.grafana_api_key,
            instance_id=settings.grafana_instance_id
        )
    else:
        logger.info("Grafana OTLP exporter not configured - metrics will not be exported")

    pipeline = PipelineComponents(
        llm_client=llm_client,
        vector_index=vector_index,
        metrics_exporter=exporter,
        config=settings
    )
    app.state.llm_client = llm_client
    app.state.pipeline = pipeline
    app.state.consumer = ComplaintBatchConsumer(pipeline.session_engine)

    logger.info("Feedback Resolver started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Feedback Resolver")
    await close_database()
    logger.info("Feedback Resolver shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Feedback Resolver API",
    description="""
    ## Automatic resolution of customer support messages

    **Endpoints:**
    - `POST /complaints` - Classify a message and reply with a known solution or a stock answer
    - `GET /analytics` - Sentiment and answer-type totals

    Each message is classified by category (billing, technical, general) and
    sentiment. The reply is the curated solution for its category, the
    solution used for a very similar past complaint, or a stock reply.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(TimingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(resolution_router)
app.include_router(analytics_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "llm_client": "zai",
                        "vector_store": "available (42 vectors)",
                        "pipeline": "ready"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    The service stays up when the vector store is unavailable; complaints
    are then answered without similarity lookups.
    """
    state = request.app.state
    checks = {
        "database": "connected" if getattr(state, "database_ready", False) else "unavailable",
        "llm_client": settings.llm_provider if getattr(state, "llm_client", None) else "not_configured",
        "vector_store": "unavailable",
        "pipeline": "ready" if getattr(state, "pipeline", None) else "not_initialized"
    }

    vector_store = getattr(state, "vector_store", None)
    if vector_store is not None:
        try:
            count = await vector_store.get_document_count()
            checks["vector_store"] = f"available ({count} vectors)"
        except VectorStoreException as e:
            checks["vector_store"] = f"error: {e.message}"

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Feedback Resolver",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "resolution": {
                "endpoints": ["POST /complaints - Process a customer message"]
            },
            "analytics": {
                "endpoints": ["GET /analytics - Complaint totals and answer-type shares"]
            }
        }
    }


# === Development Entry Point ===

def run() -> None:
    import uvicorn

    uvicorn.run(
        "feedback_resolver.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
