"""Exception handlers rendering every failure as ``{success: false, message}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from storefront.errors import StorefrontError

logger = structlog.get_logger(__name__)


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _validation_message(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            errors = errors if isinstance(errors, list) else [errors]
            parts.append(f"{field}: {', '.join(str(e) for e in errors)}")
        return "; ".join(parts)
    return str(messages)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        error=type(exc).__name__,
        status_code=exc.status_code,
        retryable=exc.retryable,
        path=request.url.path,
        **exc.context,
    )
    return failure(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return failure(400, _validation_message(exc.messages))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
    return failure(400, f"Invalid request: {', '.join(f for f in fields if f) or 'malformed body'}")


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return failure(404, "Resource not found")


async def invalid_operation_handler(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return failure(400, str(exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return failure(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(InvalidOperationError, invalid_operation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
