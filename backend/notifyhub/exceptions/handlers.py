from logging import getLogger

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .base import NotifyHubError

logger = getLogger(__name__)


def error_response(detail: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": detail},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(NotifyHubError)
    async def notifyhub_error_handler(_: Request, exc: NotifyHubError):
        logger.warning(f"{exc.status_code} {type(exc).__name__}: {exc.detail}")
        return error_response(exc.detail, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        logger.warning(f"{exc.status_code} HTTP error: {exc.detail}")
        return error_response(str(exc.detail), exc.status_code, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        logger.warning(f"400 Request validation failed: {detail}")
        return error_response(detail, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def generic_exception_handler(_: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc!r}")
        return error_response(
            "An unexpected error occurred.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
