"""Error Handlers — global exception handlers for the race ladder API.

Invariants:
    - LadderError → structured JSON; message is literal only for public errors,
      GENERIC_FAILURE_MESSAGE otherwise (core.errors.public_message)
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (LadderError), validation (Pydantic), catch-all (Exception)
    - Public errors logged at INFO: they are expected player mistakes, not incidents
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ladder.core.errors import GENERIC_FAILURE_MESSAGE, ErrorSeverity, LadderError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_ladder_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_ladder_error_handler(app: FastAPI) -> None:
    """Register ladder domain/infrastructure error handler."""

    @app.exception_handler(LadderError)
    async def ladder_error_handler(request: Request, exc: LadderError):
        """Handle all ladder domain/infrastructure errors."""
        extra = {
            "error_code": exc.code,
            "path": request.url.path,
            "player_id": exc.context.player_id,
        }
        if exc.public:
            logger.info(f"Rejected action: {exc.message}", extra=extra)
        else:
            logger.error(f"LadderError: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": GENERIC_FAILURE_MESSAGE,
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
