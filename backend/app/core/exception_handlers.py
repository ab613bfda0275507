import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.errors import BookingError, InvalidInput


logger = logging.getLogger(__name__)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = ", ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part not in ('body', 'query'))}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning("%s %s -> invalid_input: %s", request.method, request.url.path, detail)
    return JSONResponse(
        status_code=InvalidInput.status_code,
        content={"error": InvalidInput.code, "detail": detail},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "An unexpected error occurred"},
    )


EXCEPTION_HANDLERS = {
    BookingError: booking_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
