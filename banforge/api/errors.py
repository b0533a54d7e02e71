"""Translate domain errors into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.exceptions import (
    BanForgeError,
    ExternalSanctionFailed,
    InvalidBanDuration,
    InvalidIdentity,
    PlayerNotFound,
    SnapshotNotFound,
    StorageUnavailable,
    Unauthorized,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[BanForgeError], int] = {
    InvalidIdentity: 400,
    InvalidBanDuration: 400,
    Unauthorized: 401,
    PlayerNotFound: 404,
    SnapshotNotFound: 404,
    ExternalSanctionFailed: 502,
    StorageUnavailable: 503,
}


def error_response(exc: BanForgeError) -> JSONResponse:
    status_code = next(
        (code for kind, code in STATUS_CODES.items() if isinstance(exc, kind)), 500
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.kind, "message": str(exc)},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(BanForgeError)
    async def domain_exception_handler(request: Request, exc: BanForgeError) -> JSONResponse:
        if isinstance(exc, (ExternalSanctionFailed, StorageUnavailable)):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": "HTTPError", "message": str(exc.detail)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "ValidationError",
                "message": "Validation error",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "InternalError", "message": "Internal server error"},
        )
