from __future__ import annotations

from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tabletab.api.middleware.request_id import get_request_id
from tabletab.application.errors import (
    ActiveOrderExistsError,
    BatchNotFoundError,
    ConcurrentUpdateError,
    InvalidCredentialsError,
    InvalidStatusTransitionError,
    MissingCredentialsError,
    OrderAlreadyCompletedError,
    OrderAlreadyFinalError,
    OrderCompletedError,
    OrderConflictError,
    OrderNotFoundError,
    OrderValidationError,
)
from tabletab.application.ports.repositories import StoreError


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
        headers=headers,
    )


def _exception_handler(status_code: int, code: str, headers: dict[str, str] | None = None):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
            headers=headers,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 409:
        code = "CONFLICT"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": jsonable_encoder(validation_exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (OrderValidationError, 400, "VALIDATION_ERROR"),
        (InvalidStatusTransitionError, 400, "INVALID_STATUS_TRANSITION"),
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (BatchNotFoundError, 404, "BATCH_NOT_FOUND"),
        (OrderConflictError, 409, "CONFLICT"),
        (ActiveOrderExistsError, 409, "ACTIVE_ORDER_EXISTS"),
        (OrderCompletedError, 409, "ORDER_COMPLETED"),
        (OrderAlreadyCompletedError, 409, "ORDER_ALREADY_COMPLETED"),
        (OrderAlreadyFinalError, 400, "ORDER_ALREADY_FINAL"),
        (ConcurrentUpdateError, 409, "CONCURRENT_UPDATE"),
        (InvalidCredentialsError, 403, "FORBIDDEN"),
        (StoreError, 503, "STORE_UNAVAILABLE"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(
        MissingCredentialsError,
        _exception_handler(401, "UNAUTHORIZED", headers={"WWW-Authenticate": "Bearer"}),
    )
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
