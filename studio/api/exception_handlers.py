"""
Exception Handlers
==================

Translate service-layer exceptions into ``{"error", "code", "details"}`` JSON
responses.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from studio.common.common_message import CommonMessage
from studio.common.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)


def _error_response(message: str, code: str, status_code: int, details: Optional[Any] = None) -> JSONResponse:
    content = {"error": message, "code": code}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s - %s", request.method, request.url.path, exc.code.value, exc.message)
    else:
        logger.warning("%s %s rejected: %s - %s", request.method, request.url.path, exc.code.value, exc.message)

    return _error_response(exc.message, exc.code.value, exc.status_code, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        # Drop the "body" / "query" / "path" prefix
        location = [str(loc) for loc in error["loc"][1:]] or [str(loc) for loc in error["loc"]]
        errors.append(
            {
                "field": ".".join(location),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning("%s %s invalid request: %d errors", request.method, request.url.path, len(errors))

    return _error_response(
        CommonMessage.INVALID_REQUEST,
        ErrorCode.VALIDATION_ERROR.value,
        status.HTTP_400_BAD_REQUEST,
        errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, type(exc).__name__)

    return _error_response(
        CommonMessage.INTERNAL_ERROR,
        ErrorCode.INTERNAL_ERROR.value,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
