import logging
from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class StoreError(Exception):
    """Raised by a store when the database cannot be reached or a query fails."""


# Custom exceptions
class AppException(Exception):
    """Base exception for errors rendered straight into a JSON response."""

    def __init__(self, status_code: int, content: Dict[str, Any]):
        super().__init__(content.get("message"))
        self.status_code = status_code
        self.content = content


class MissingSecret(AppException):
    def __init__(self, message: str = "Admin password is required"):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, {"success": False, "message": message}
        )


class InvalidSecret(AppException):
    def __init__(self, message: str = "Invalid admin password"):
        super().__init__(
            status.HTTP_403_FORBIDDEN, {"success": False, "message": message}
        )


class StoreUnavailable(AppException):
    """A store failure surfaced to the caller with a fixed message.

    ``content`` holds the exact body each endpoint documents, e.g.
    ``{"message": "Server error"}`` for reads.
    """

    def __init__(self, content: Dict[str, Any] = None):
        if content is None:
            content = {"success": False, "message": SERVER_ERROR_MESSAGE}
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, content)


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(
        f"{request.method} {request.url.path} failed: {exc.content.get('message')} "
        f"(Status: {exc.status_code})"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.content)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A payload the models cannot coerce is rejected like a store rejection:
    500 with the endpoint's usual failure body."""
    logger.error(f"Rejected payload for {request.method} {request.url.path}: {exc.errors()}")
    content = {"success": False, "message": SERVER_ERROR_MESSAGE}
    if request.method == "POST":
        content = {"success": False, "id": None, "message": SERVER_ERROR_MESSAGE}
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": SERVER_ERROR_MESSAGE},
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
