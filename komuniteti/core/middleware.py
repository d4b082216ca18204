"""
HTTP middleware.
"""

import time
import uuid

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from komuniteti.core.logging import get_logger, request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request correlation middleware.

    Binds the incoming X-Request-ID (or a fresh one) to the logging
    context for the duration of the request and echoes it back.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id.set(correlation_id)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = correlation_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "request_id": correlation_id,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return response


def register_middlewares(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)
