"""
FastAPI middleware: request id, latency, and upstream quota pass-through.
Why: the browser sees how much OpenAQ quota is left without an extra call.
"""

import time
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger
from .metrics import metrics

_LOG = get_logger(__name__)

QUOTA_HEADERS = {
    "used": "X-OpenAQ-RateLimit-Used",
    "remaining": "X-OpenAQ-RateLimit-Remaining",
    "reset": "X-OpenAQ-RateLimit-Reset",
}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            metrics.increment_requests()
            metrics.record_latency(duration_ms)
            status = response.status_code if response is not None else 500
            if status >= 500:
                metrics.increment_errors()
            _LOG.info(
                f"path={request.url.path} method={request.method} "
                f"status={status} duration_ms={duration_ms} request_id={request_id}"
            )
            if response is not None:
                response.headers["X-Request-ID"] = request_id
                for name, header in QUOTA_HEADERS.items():
                    value = metrics.rate_limit.get(name)
                    if value is not None:
                        response.headers[header] = value
