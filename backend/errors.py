"""
Application error taxonomy and its HTTP rendering.
Every error is terminal at the API boundary: fixed status, stable reason code, human message.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    reason = "internal_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.reason, "detail": self.message}


class ValidationError(AppError):
    """Bad caller input. `constraint` names the rule that was violated."""

    status_code = 400
    reason = "validation_error"

    def __init__(self, message: str, constraint: str):
        super().__init__(message)
        self.constraint = constraint

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["constraint"] = self.constraint
        return body


class Unauthorized(AppError):
    status_code = 401
    reason = "unauthorized"


class Forbidden(AppError):
    status_code = 403
    reason = "forbidden"


class NotFound(AppError):
    status_code = 404
    reason = "not_found"


class Conflict(AppError):
    status_code = 409
    reason = "conflict"


class AnalysisUnavailable(AppError):
    """The model or the store failed during analysis. Callers are not told which."""

    status_code = 503
    reason = "analysis_unavailable"


def _constraint_from_pydantic(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid_request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "body"
    return f"{field}_{first.get('type', 'invalid')}"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.reason} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        error = ValidationError(first.get("msg", "Invalid request"), _constraint_from_pydantic(exc))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "detail": "An unexpected error occurred"},
        )
