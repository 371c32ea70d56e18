"""
HTTP middleware: one access log line per request and the request body size cap.
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from utils.exceptions import PayloadTooLargeException, error_response
from utils.logger import ACCESS_LOGGER_NAME, get_logger

access_logger = get_logger(ACCESS_LOGGER_NAME)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        client = request.client.host if request.client else "-"
        access_logger.info(
            f'{client} "{request.method} {request.url.path}" {response.status_code} {duration_ms:.1f}ms'
        )
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds max_bytes."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            exc = PayloadTooLargeException()
            return error_response(exc.status_code, exc.error)
        return await call_next(request)
