import logging
import time
import uuid

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from relay.core.errors import PayloadTooLargeError, ValidationError, error_response

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info("[START] request_id=%s %s %s", request_id, request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception("[ERROR] request_id=%s duration_ms=%d", request_id, duration_ms)
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "[END]   request_id=%s status=%d duration_ms=%d",
            request_id,
            response.status_code,
            duration_ms,
        )
        response.headers["x-request-id"] = request_id
        return response


class BodySizeLimitMiddleware:
    """Caps request bodies at ``max_bytes``.

    A declared Content-Length over the limit is rejected up front. Bodies
    without one (chunked uploads) are counted as they are received and fail
    with ``PayloadTooLargeError`` once the count passes the limit.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(
                "%s %s rejected: body of %s bytes over limit %d",
                scope["method"],
                scope["path"],
                declared,
                self.max_bytes,
            )
            response = error_response(
                413,
                ValidationError.kind,
                f"request body exceeds {self.max_bytes} bytes",
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise PayloadTooLargeError(self.max_bytes)
            return message

        await self.app(scope, limited_receive, send)
