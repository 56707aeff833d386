"""
Diastology API - Diastolic Function Decision Graphs

A clinical decision support API that walks a user through published
echocardiographic diastolic function algorithms (ASE/EACVI 2016,
BSE 2024, Young et al. 2025) to a graded outcome.

This API provides:
- Algorithm listing and node lookup
- Stateless navigation by history replay
- Session navigation with serialized state
- Structured errors and request logging
"""

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diastology.config.config import Settings, get_settings
from diastology.config.logging_config import configure_logging, get_logger, log_request_context
from diastology.exceptions import (
    AlgorithmNotFoundError,
    DiastologyError,
    InvalidAnswerError,
    NavigationStateError,
    NodeNotFoundError,
    SerializationError,
)
from diastology.models.models import (
    AlgorithmListResponse,
    AlgorithmNodeResponse,
    AnswerRequest,
    BackRequest,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    SessionAnswerRequest,
    SessionResponse,
    SessionStateRequest,
    StartSessionRequest,
)
from diastology.services.algorithm_registry import get_algorithm_registry
from diastology.services.session_service import SessionService, get_session_service

logger = get_logger(__name__)


def error_status(exc: DiastologyError) -> int:
    """HTTP status code for an engine error."""
    if isinstance(exc, AlgorithmNotFoundError):
        return 404
    if isinstance(exc, NodeNotFoundError):
        return 404 if exc.requested else 500
    if isinstance(exc, (InvalidAnswerError, NavigationStateError, SerializationError)):
        return 400
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds and validates the algorithm registry on startup.
    """
    settings = get_settings()

    # Startup
    logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        config=settings.get_safe_config_dict(),
    )
    registry = get_algorithm_registry()
    logger.info("Algorithms loaded", algorithm_ids=registry.ids())

    yield

    # Shutdown
    logger.info("Application shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description=__doc__,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and context."""
        request_id = str(uuid4())
        start_time = time.perf_counter()

        # Bind request context for all logs in this request
        log_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        processing_time = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-Ms"] = str(processing_time)

        logger.info(
            "Request completed",
            status_code=response.status_code,
            processing_time_ms=processing_time,
        )

        return response

    # Exception handlers
    @app.exception_handler(DiastologyError)
    async def diastology_exception_handler(request: Request, exc: DiastologyError):
        """Render engine errors with their code and details."""
        status_code = error_status(exc)
        if status_code >= 500:
            logger.error("Engine error", error=exc.code, message=exc.message, details=exc.details)
        else:
            logger.warning("Request rejected", error=exc.code, message=exc.message)

        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                **exc.to_dict(),
                request_id=request.headers.get("X-Request-ID"),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with structured response."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
                request_id=request.headers.get("X-Request-ID"),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error occurred",
                request_id=request.headers.get("X-Request-ID"),
            ).model_dump(mode="json"),
        )

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        settings = get_settings()
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "operational",
            "docs": "/docs" if settings.debug else "disabled",
            "defaultAlgorithm": settings.default_algorithm_id,
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
        """
        Health check endpoint for monitoring.

        Returns system health status and component checks.
        """
        registry = get_algorithm_registry()
        checks = {
            "api": True,
            "algorithms_loaded": bool(registry.ids()),
            "default_algorithm_registered": settings.default_algorithm_id in registry,
        }

        # Determine overall status
        if all(checks.values()):
            status = HealthStatus.HEALTHY
        elif checks["algorithms_loaded"]:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.UNHEALTHY

        return HealthResponse(
            status=status,
            version=settings.app_version,
            environment=settings.environment,
            checks=checks,
        )

    # =========================================================================
    # Algorithms (stateless, history replay)
    # =========================================================================

    @app.get("/api/v1/algorithms", response_model=AlgorithmListResponse, tags=["Algorithms"])
    async def list_algorithms(
        settings: Settings = Depends(get_settings),
        service: SessionService = Depends(get_session_service),
    ) -> AlgorithmListResponse:
        """List every registered algorithm with its modes and citation."""
        return service.list_algorithms(settings.default_algorithm_id)

    @app.get("/api/v1/algorithms/{algorithm_id}", response_model=AlgorithmNodeResponse, tags=["Algorithms"])
    async def get_algorithm(
        algorithm_id: str,
        mode: str | None = None,
        node_id: str | None = Query(default=None, alias="nodeId"),
        service: SessionService = Depends(get_session_service),
    ) -> AlgorithmNodeResponse:
        """
        Get an algorithm and the node to display.

        Without ``nodeId`` the entry node of ``mode`` is returned. A
        requested evaluator node is resolved on the server.
        """
        return service.describe(algorithm_id, mode_id=mode, node_id=node_id)

    @app.post("/api/v1/algorithms/{algorithm_id}", response_model=AlgorithmNodeResponse, tags=["Algorithms"])
    async def answer_node(
        algorithm_id: str,
        request: AnswerRequest,
        service: SessionService = Depends(get_session_service),
    ) -> AlgorithmNodeResponse:
        """
        Answer a node.

        The server replays ``history`` from the entry node, submits
        ``answer`` at ``nodeId`` and returns the next displayable node.
        """
        logger.info("Answer received", algorithm_id=algorithm_id, node_id=request.node_id, answer=request.answer)
        return service.answer(algorithm_id, request)

    @app.put("/api/v1/algorithms/{algorithm_id}", response_model=AlgorithmNodeResponse, tags=["Algorithms"])
    async def go_back(
        algorithm_id: str,
        request: BackRequest,
        service: SessionService = Depends(get_session_service),
    ) -> AlgorithmNodeResponse:
        """Go back to the previous question, skipping evaluator steps."""
        return service.back(algorithm_id, request)

    # =========================================================================
    # Sessions (serialized state)
    # =========================================================================

    @app.post("/api/v1/sessions", response_model=SessionResponse, tags=["Sessions"])
    async def start_session(
        request: StartSessionRequest,
        settings: Settings = Depends(get_settings),
        service: SessionService = Depends(get_session_service),
    ) -> SessionResponse:
        """Start a session; defaults to the configured algorithm."""
        algorithm_id = request.algorithm_id or settings.default_algorithm_id
        return service.start_session(algorithm_id, request.mode_id)

    @app.post("/api/v1/sessions/answer", response_model=SessionResponse, tags=["Sessions"])
    async def session_answer(
        request: SessionAnswerRequest,
        service: SessionService = Depends(get_session_service),
    ) -> SessionResponse:
        """Submit an answer to a serialized session."""
        return service.submit(request.state, request.answer)

    @app.post("/api/v1/sessions/back", response_model=SessionResponse, tags=["Sessions"])
    async def session_back(
        request: SessionStateRequest,
        service: SessionService = Depends(get_session_service),
    ) -> SessionResponse:
        """Undo the last user-visible step of a serialized session."""
        return service.go_back(request.state)

    @app.post("/api/v1/sessions/restart", response_model=SessionResponse, tags=["Sessions"])
    async def session_restart(
        request: SessionStateRequest,
        service: SessionService = Depends(get_session_service),
    ) -> SessionResponse:
        """Restart a serialized session with the same algorithm and mode."""
        return service.restart(request.state)


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "diastology.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
