from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from logging_config import get_logger

logger = get_logger(__name__)


class DuplicateIdempotencyKey(Exception):
    """Raised when an insert violates the unique index on idempotency_key."""

    def __init__(self, idempotency_key: str):
        super().__init__(f"Expense with idempotency key {idempotency_key!r} already exists")
        self.idempotency_key = idempotency_key


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def format_validation_errors(errors) -> str:
    """Render the first pydantic error as '<field>: <message>'."""
    if not errors:
        return "Invalid request"
    err = errors[0]
    msg = err.get("msg", "Invalid value")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "header"))
    return f"{loc}: {msg}" if loc else msg


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc):
    # RequestValidationError and pydantic's ValidationError both expose errors()
    return _error(status.HTTP_400_BAD_REQUEST, format_validation_errors(exc.errors()))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or exc.__class__.__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Make every error response a JSON object of the form {"error": message}."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
