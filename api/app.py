"""
Main FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import structlog

from config import Settings, get_settings, validate_production_config
from mealgen.errors import ErrorKind, GenerationError, user_message
from mealgen.orchestrator import RequestOrchestrator, build_orchestrator
from mealgen.service import MealPlanningService
from .models import ErrorResponse
from .middleware import RequestTracingMiddleware
from .routes import generation_router, health_router

logger = structlog.get_logger()

ERROR_STATUS_CODES = {
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.INVALID_REQUEST: 422,
}


def configure_logging(settings: Settings):
    """structlog for the HTTP layer, stdlib logging for the orchestration package"""
    level = getattr(logging, settings.log_level.value)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _error_response(request: Request, status_code: int, content: ErrorResponse) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=content.model_dump(by_alias=True, exclude_none=True),
        headers={"X-Request-ID": request_id} if request_id else {},
    )


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[RequestOrchestrator] = None,
) -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting MealGen AI Service", version=settings.app_version)

        if settings.is_production:
            config_issues = validate_production_config(settings)
            if config_issues:
                logger.error("Production configuration issues", issues=config_issues)

        owns_orchestrator = getattr(app.state, "orchestrator", None) is None
        if owns_orchestrator:
            app.state.orchestrator = build_orchestrator(settings)
            app.state.meal_service = MealPlanningService(app.state.orchestrator)

        logger.info("AI providers configured", providers=app.state.orchestrator.provider_names)

        yield

        logger.info("Shutting down MealGen AI Service")
        if owns_orchestrator:
            await app.state.orchestrator.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="AI generation for recipes, meal plans and quick meals",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )
    app.state.settings = settings

    # injected instances are owned by the caller
    if orchestrator is not None:
        app.state.orchestrator = orchestrator
        app.state.meal_service = MealPlanningService(orchestrator)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(RequestTracingMiddleware)

    @app.exception_handler(GenerationError)
    async def generation_error_handler(request: Request, exc: GenerationError):
        """Canonical generation errors with a friendly message"""
        status_code = ERROR_STATUS_CODES.get(exc.kind, 503)

        logger.warning(
            "Generation failed",
            code=exc.code,
            provider=exc.provider,
            status_code=status_code,
            request_id=getattr(request.state, "request_id", None),
        )

        error_response = ErrorResponse(
            error=user_message(exc),
            code=exc.code,
            request_id=getattr(request.state, "request_id", None),
        )
        response = _error_response(request, status_code, error_response)
        if status_code == 429:
            response.headers["Retry-After"] = str(settings.quota_window_seconds)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Custom validation exception handler"""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return _error_response(request, 422, ErrorResponse(
            error="Request validation failed",
            code=ErrorKind.INVALID_REQUEST.code,
            request_id=getattr(request.state, "request_id", None),
            errors=errors,
        ))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=getattr(request.state, "request_id", None),
            path=request.url.path,
        )

        # Don't expose internal error details in production
        detail = str(exc) if not settings.is_production else "Internal server error"

        return _error_response(request, 500, ErrorResponse(
            error=detail,
            code="INTERNAL_ERROR",
            request_id=getattr(request.state, "request_id", None),
        ))

    app.include_router(health_router)
    app.include_router(generation_router)

    return app
