"""HTTP middleware for the query API.

Starlette runs middleware last-added-first.  ``main.create_app`` adds
``ErrorHandlingMiddleware`` first and ``RequestLoggingMiddleware`` second,
so the access log records the status after an error was turned into JSON.
CORS is added last and therefore answers preflight requests before either.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from total_recall.api.schemas import ErrorResponse
from total_recall.utils.errors import TotalRecallError
from total_recall.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Allow browser clients to call the API; every origin unless restricted."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one ``http_request`` event per request.

    A short request id is bound to structlog's context variables for the
    duration of the request, so retrieval and completion logs written
    while serving it carry the same ``request_id``.  For streamed answers
    ``duration_ms`` is the time to the first byte.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = uuid.uuid4().hex[:12]
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code if response is not None else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn a ``TotalRecallError`` raised before the body starts into a JSON 500.

    The client sees the error class and message only.  Anything that is
    not a ``TotalRecallError`` propagates to the server unchanged.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except TotalRecallError as exc:
            _logger.error(
                "request_failed",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=500, content=body.model_dump())
