"""
Middleware for the MealGen AI Service
Request tracing and timing
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from .models import ErrorResponse

logger = structlog.get_logger()

SERVICE_NAME = "mealgen-ai-service"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Add request tracing and timing information"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.time() - start_time

            logger.error(
                "Request failed",
                request_id=request_id,
                error_type=type(exc).__name__,
                process_time=round(process_time, 4),
            )

            error_response = ErrorResponse(
                error="Internal server error",
                code="INTERNAL_ERROR",
                request_id=request_id,
            )
            return JSONResponse(
                status_code=500,
                content=error_response.model_dump(by_alias=True, exclude_none=True),
                headers={"X-Request-ID": request_id},
            )

        process_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 4))
        response.headers["X-Service"] = SERVICE_NAME

        logger.info(
            "Request completed",
            request_id=request_id,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )

        return response
