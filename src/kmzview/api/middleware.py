"""
Request correlation and per-request logging context.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from kmzview.core.logging_config import LogContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID and log its outcome and duration.

    The client's ``X-Request-ID`` is reused when sent; otherwise a UUID is
    generated. Either way it is stored on ``request.state`` and echoed on the
    response.
    """

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{route} failed with {type(e).__name__}",
                extra={"duration_ms": _elapsed_ms(started)},
                exc_info=True,
            )
            raise

        response.headers[self.header_name] = request_id
        logger.info(
            f"{route} -> {response.status_code}",
            extra={"status_code": response.status_code, "duration_ms": _elapsed_ms(started)},
        )
        return response


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """
    Attach the request ID, method and path to every record logged while the
    request is handled. Must be added before ``RequestCorrelationMiddleware``
    so that it runs inside it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        with LogContext(
            request_id=getattr(request.state, "request_id", None),
            http_method=request.method,
            request_path=request.url.path,
        ):
            return await call_next(request)
