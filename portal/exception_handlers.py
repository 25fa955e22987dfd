"""
Global exception handlers.

Registered in main.py:

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from portal.exceptions import AppException

logger = logging.getLogger(__name__)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Response format:
        {"error": "<message>", "error_code": "<CODE>", ...extra}
    """
    # 4xx are client mistakes, 5xx are ours
    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        "%s: %s (%s %s)",
        exc.error_code,
        exc.message,
        request.method,
        request.url.path,
    )

    content = {"error": exc.message, "error_code": exc.error_code}
    content.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=content)


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return JSONResponse(
        status_code=502,
        content={"error": "Database error", "error_code": "DEPENDENCY_FAILURE"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all: log the traceback, return a generic message.

    HTTPException is handled by FastAPI's default handler and never gets here.
    """
    logger.exception(
        "Unhandled exception on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "error_code": "INTERNAL_ERROR"},
    )
