"""Error Handlers — failures raised OUTSIDE a RouteMap callstack.

Invariants:
    - RouteMapError → {"Error": public_message} with its own status
    - RequestValidationError → 400 {"Error": "Bad Request", "details": [...]}
    - Exception (catch-all) → 500 {"Error": "Internal Server Error"}, never leaks internals
    - Same envelope the Responder uses, so clients see one error shape

Design Decisions:
    - Three-layer handler: typed (RouteMapError), validation (Pydantic), catch-all
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from routemap.core.errors import INTERNAL_SERVER_ERROR, RouteMapError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_routemap_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_routemap_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RouteMapError)
    async def routemap_error_handler(request: Request, exc: RouteMapError):
        """Handle typed errors raised directly by handler code."""
        logger.error(
            f"RouteMapError: {exc.message}",
            extra={
                "error_code": exc.code,
                "error_category": exc.category.value,
                "path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"Error": INTERNAL_SERVER_ERROR},
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "Error": "Bad Request",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ],
    }
