"""API error type and the handlers that render every error as a JSON ``{"error": ...}`` body."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


class ApiError(Exception):
    """
    Raised by handlers and dependencies to end a request with a JSON error.

    ``extra`` fields are merged into the body next to ``error``.
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ) -> None:
        self.status_code = status_code
        self.message = error
        self.headers = headers
        self.extra = extra
        super().__init__(error)


def bad_request(message: str, **extra: Any) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message, **extra)


def unauthorized(message: str, **extra: Any) -> ApiError:
    return ApiError(status.HTTP_401_UNAUTHORIZED, message, **extra)


def forbidden(message: str, **extra: Any) -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, message, **extra)


def not_found(message: str, **extra: Any) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message, **extra)


def server_error(message: str, **extra: Any) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, **extra)


def is_blank(value: Any) -> bool:
    """Presence check used for required request fields: None, empty or whitespace-only."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = {"error": exc.message, **exc.extra}
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(body),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies are client errors like any missing field.
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Dữ liệu yêu cầu không hợp lệ", "details": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Lỗi server khi xử lý yêu cầu"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
