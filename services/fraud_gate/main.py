"""
Fraud Gate Service - Main Application
=====================================

FastAPI application exposing the submission fraud checks.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from shared.config import settings
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse

from services.fraud_gate.dependencies import get_gate_factory, set_gate_factory
from services.fraud_gate.routes import checks_router

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.json_logs or settings.is_production,
    service_name="fraud-gate",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "fraud_gate_starting",
        environment=settings.environment.value,
        port=settings.fraud_gate_port,
        store_backend=settings.store.backend.value,
    )

    get_gate_factory()

    yield

    logger.info("fraud_gate_shutting_down")
    await get_gate_factory().close()
    set_gate_factory(None)


# Create FastAPI application
app = FastAPI(
    title="RewardGuard Fraud Gate",
    description="Duplicate, rate, velocity and account checks for reward submissions",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its key-value store.
    """
    components: dict[str, dict[str, Any]] = {}

    factory = get_gate_factory()
    components["store"] = await factory.store.health_check()

    all_healthy = all(
        c.get("status") == "healthy" for c in components.values()
    )

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="fraud-gate",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "RewardGuard Fraud Gate",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    error = ErrorResponse(error=str(exc.detail), error_code=f"HTTP_{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=error.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    error = ErrorResponse(error="Internal server error", error_code="INTERNAL_ERROR")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.model_dump(mode="json"),
    )


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(checks_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.fraud_gate.main:app",
        host="0.0.0.0",
        port=settings.fraud_gate_port,
        reload=settings.debug,
    )
