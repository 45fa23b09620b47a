from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from carwash.core.logger import logger


class BookingError(Exception):
    """Base class for errors that map onto a structured JSON response."""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailure(BookingError):
    status_code = 400
    default_message = "Validation failed"


class NotFound(BookingError):
    status_code = 404
    default_message = "Booking not found"


class InvalidIdentifier(BookingError):
    status_code = 400
    default_message = "Invalid booking ID"


class DuplicateConflict(BookingError):
    status_code = 409
    default_message = "Duplicate entry found"


class TokenError(BookingError):
    status_code = 401
    default_message = "Invalid token"


def translate_store_error(exc: APIError) -> BookingError:
    """
    Map a PostgREST error onto the booking error taxonomy by its code.
    Unknown codes come back as a plain BookingError carrying the raw message.
    """
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)

    if code == "22P02":
        # invalid input syntax for type uuid
        return InvalidIdentifier()
    if code == "23505":
        return DuplicateConflict()
    if code == "PGRST301" or "JWT" in message:
        if "expired" in message.lower():
            return TokenError("Token expired")
        return TokenError()
    return BookingError(message)


def format_validation_errors(errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into [{'field', 'message'}]."""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(loc) or "body", "message": message})
    return formatted


async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error(f"🔥 {request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"⚠️ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    failure = ValidationFailure(errors=format_validation_errors(exc.errors()))
    return await booking_error_handler(request, failure)


async def store_error_handler(request: Request, exc: APIError):
    return await booking_error_handler(request, translate_store_error(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": str(exc) or "Internal server error"}
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(APIError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
