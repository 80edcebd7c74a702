import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message}


class BusinessRuleError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class UnauthorizedError(AppError):
    """Caller is authenticated but may not touch this resource."""

    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} not found: {resource_id}"
        super().__init__(message)


class ReservationConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflict: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.conflict = conflict

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["conflict"] = self.conflict
        return body


class CheckInTimeError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    TOO_EARLY = "too_early"
    TOO_LATE = "too_late"

    def __init__(self, message: str, kind: str):
        super().__init__(message)
        self.kind = kind

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["kind"] = self.kind
        return body


class UserBlacklistedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str, remaining_time: int, blacklist_end_time=None):
        super().__init__(message)
        self.remaining_time = remaining_time
        self.blacklist_end_time = blacklist_end_time

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["remaining_time"] = self.remaining_time
        body["blacklist_end_time"] = (
            self.blacklist_end_time.isoformat() if self.blacklist_end_time else None
        )
        return body


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    AppError: app_error_handler,
    StarletteHTTPException: http_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
