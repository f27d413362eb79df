"""Error taxonomy and the FastAPI handlers that turn it into JSON responses."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UpstreamTimeout(AppError):
    status_code = status.HTTP_408_REQUEST_TIMEOUT


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def forbidden(message: str) -> AuthError:
    return AuthError(message, status_code=status.HTTP_403_FORBIDDEN)


def _error_body(message: str, error_type: str) -> dict:
    return {"detail": message, "error_type": error_type}


async def handle_app_errors(request: Request, exc: AppError) -> JSONResponse:
    error_type = type(exc).__name__
    log = logger.bind(
        http_status=exc.status_code,
        http_method=request.method,
        url_path=str(request.url.path),
    )
    if exc.status_code >= 500:
        log.error(f"{error_type}: {exc.message}")
    else:
        log.warning(f"{error_type}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, error_type))


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg', 'invalid input')}" if field else first.get("msg", "invalid input")

    logger.bind(
        http_status=400,
        http_method=request.method,
        url_path=str(request.url.path),
        validation_errors=errors,
    ).warning(f"Validation error: {len(errors)} validation errors")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(message, "ValidationError"),
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Catch anything no specific handler dealt with and answer with an opaque 500."""
    try:
        return await call_next(request)
    except Exception as err:  # noqa: BLE001
        logger.bind(
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
        ).opt(exception=err).error(f"Unhandled exception: {type(err).__name__}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error", "InternalError"),
        )
