import logging
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from orderdesk.core.config import APP_ENV
from orderdesk.core.errors import OrderDeskError
from orderdesk.schemas.response import ErrorBody, ErrorResponse

log = logging.getLogger(__name__)


def _error_body(code: str, message, details=None):
    """Builds the shared error envelope; a fresh request id is generated for every response."""
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return body.model_dump(exclude_none=True)


# ----------- Exception Handlers (called by FastAPI) -----------

def domain_exception_handler(request: Request, exc: OrderDeskError):
    """Handles errors raised by the order pipeline (validation, payment, auth...)."""
    extra = {}
    if exc.details:
        extra["details"] = exc.details
    if exc.status_code >= 500:
        log.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, **extra))


def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", exc.detail),
        headers=getattr(exc, "headers", None),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    body = _error_body("validation_error", "Invalid input data", details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=422, content=body)


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}")
    extra = {}
    # Only leak exception text while developing
    if APP_ENV == "development":
        extra["details"] = str(exc)
    return JSONResponse(status_code=500, content=_error_body("server_error", "Internal Server Error", **extra))


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""

    # Register handlers
    app.add_exception_handler(OrderDeskError, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
