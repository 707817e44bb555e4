# saferide/services/api/error_handlers.py
"""
Перевод исключений в HTTP-ответы ErrorResponse.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from saferide.common.errors import SafeRideError, StorageFailure
from saferide.common.logger import log_error, log_info
from saferide.common.constants import TypeMsg
from saferide.shared.models.common import ErrorResponse


def _response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def handle_app_error(request: Request, exc: SafeRideError) -> JSONResponse:
    level = TypeMsg.ERROR if exc.status_code >= 500 else TypeMsg.DEBUG
    await log_info(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}",
        type_msg=level,
    )
    # Подробности ошибок хранилища наружу не отдаём
    message = "Storage is temporarily unavailable" if isinstance(exc, StorageFailure) else exc.message
    return _response(
        exc.status_code,
        ErrorResponse(error_code=exc.error_code, message=message, details=exc.details),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _response(
        400,
        ErrorResponse(
            error_code="invalid_input",
            message="Request validation failed",
            details={"errors": errors},
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Необработанная ошибка {request.method} {request.url.path}: {exc!r}", exc_info=True)
    return _response(500, ErrorResponse(error_code="internal_error", message="Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SafeRideError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
