import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from relay.schemas import ErrorResponse

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base error converted into an ``{ok: false}`` response at the handler boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """Raised when the caller supplied incomplete input."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"


class ConfigurationError(RelayError):
    """Raised when the deployment is missing required configuration."""

    kind = "configuration"


class UpstreamError(RelayError):
    """Raised when the storage or agent service call fails."""

    kind = "upstream"


class PayloadTooLargeError(HTTPException):
    """Raised while reading a request body that grows past the configured limit.

    An ``HTTPException`` so FastAPI re-raises it from body parsing instead of
    turning it into a generic 400.
    """

    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            status_code=413,
            detail=f"request body exceeds {max_bytes} bytes",
        )


def error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=message, kind=kind)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def describe_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts) or "invalid request"


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.kind, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_errors(exc.errors())
    logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    return error_response(status.HTTP_400_BAD_REQUEST, ValidationError.kind, message)


async def payload_too_large_handler(request: Request, exc: PayloadTooLargeError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return error_response(exc.status_code, ValidationError.kind, exc.detail)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s failed unexpectedly",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, RelayError.kind, str(exc) or type(exc).__name__)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
