"""Maps exceptions to HTTP responses.

Domain errors become ``{"status": "fail", "message": ...}`` with the code
from ``STATUS_CODES``.  Anything else is logged with its traceback and
answered with a generic 500 that does not leak internals.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.domain.exceptions import (
    ConcurrencyError,
    DomainException,
    ForbiddenError,
    IllegalTransitionError,
    InsufficientStockError,
    NotFoundError,
    StockAdjustmentError,
    ValidationError,
)

log = logging.getLogger(__name__)

# Checked in order; subclasses must come before their bases.
STATUS_CODES: tuple[tuple[type[DomainException], int], ...] = (
    (ValidationError, 400),
    (InsufficientStockError, 400),
    (NotFoundError, 404),
    (ForbiddenError, 403),
    (StockAdjustmentError, 409),
    (IllegalTransitionError, 409),
    (ConcurrencyError, 409),
)


def status_code_for(exc: DomainException) -> int:
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 400


def _fail(code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=code, content={"status": "fail", "message": message})


async def _domain_error(request: Request, exc: DomainException) -> JSONResponse:
    code = status_code_for(exc)
    log.info("%s %s -> %d %s: %s", request.method, request.url.path, code, type(exc).__name__, exc)
    return _fail(code, str(exc))


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    return _fail(400, f"Invalid request body: {problems}")


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "fail", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Something went wrong. Please try again later."},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, _domain_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unexpected_error)
