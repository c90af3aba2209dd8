"""Request correlation middleware.

Every request gets an X-Request-ID (taken from the caller when present)
that is attached to all log lines written while serving it.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .context import generate_request_id, request_id_var
from .logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        token = request_id_var.set(request_id)
        start = time.time()

        try:
            response = await call_next(request)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"status_code": response.status_code, "duration_ms": _elapsed_ms(start)},
            )
        except Exception:
            logger.error(
                f"{request.method} {request.url.path} failed",
                extra={"duration_ms": _elapsed_ms(start)},
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)
