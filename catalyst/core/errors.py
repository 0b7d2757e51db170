"""Domain error taxonomy and the FastAPI handlers that render it."""

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalyst.core.config import settings

logger = logging.getLogger(__name__)


class CatalystError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


class ValidationError(CatalystError):
    status_code = 400
    message = "Invalid request data"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class AuthError(CatalystError):
    status_code = 401
    message = "Invalid username or password"


class Unauthorized(CatalystError):
    status_code = 401
    message = "Authentication required"


class NotFound(CatalystError):
    status_code = 404
    message = "Not found"


class RateLimited(CatalystError):
    status_code = 429
    message = "Too many requests, please try again later."

    def __init__(self, message: str | None = None, retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "retryAfter": self.retry_after}


class UpstreamFailure(CatalystError):
    """The AI provider failed. Absorbed by the chat flow, never rendered."""

    status_code = 502
    message = "Failed to get AI response"


class InternalError(CatalystError):
    pass


class ParseError(CatalystError):
    """Stored data could not be decoded."""

    message = "Stored data is malformed"


def _format_validation_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CatalystError)
    async def catalyst_error_handler(request: Request, exc: CatalystError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request data", "errors": _format_validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = InternalError().to_dict()
        if not settings.is_production:
            body["error"] = str(exc)
            stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
            body["stack"] = "".join(stack).splitlines()[:10]
        return JSONResponse(status_code=500, content=body)
