"""
Middleware for the StockScope API.

Provides:
- Request size limiting (bar histories are posted in the body)
- Global exception handlers (engine errors mapped to HTTP, no stack traces)
"""

import logging
import os
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.validation import SimulationCancelled

logger = logging.getLogger(__name__)

# ─── Request Size Limiter ─────────────────────────────────────────


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with bodies larger than MAX_BYTES.

    Ten years of daily bars is roughly 300 KB of JSON; the default 5 MB
    leaves ample headroom.  Override with ENGINE_MAX_BODY_BYTES.
    """

    MAX_BYTES = int(os.getenv("ENGINE_MAX_BODY_BYTES", str(5 * 1_048_576)))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > self.MAX_BYTES:
            logger.warning(
                f"Request body too large: {content_length} bytes from "
                f"{request.client.host if request.client else 'unknown'}"
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={
                    "error": "Request too large",
                    "detail": f"Maximum body size is {self.MAX_BYTES} bytes.",
                },
            )
        return await call_next(request)


# ─── Global Exception Handlers ───────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine exceptions to HTTP responses without leaking tracebacks.

    - ValueError (incl. InvalidParameterError) → 422
    - SimulationCancelled → 504
    - anything else → 500 with a generic message
    """

    @app.exception_handler(Exception)
    async def _unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": "An unexpected error occurred. Please try again later.",
            },
        )

    @app.exception_handler(ValueError)
    async def _value_error(request: Request, exc: ValueError) -> JSONResponse:
        logger.warning(f"ValueError on {request.url.path}: {exc}")
        safe_detail = str(exc)[:200]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Validation error", "detail": safe_detail},
        )

    @app.exception_handler(SimulationCancelled)
    async def _simulation_cancelled(request: Request, exc: SimulationCancelled) -> JSONResponse:
        logger.warning(f"Simulation cancelled on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content={"error": "Simulation timed out", "detail": str(exc)[:200]},
        )
