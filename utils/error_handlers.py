"""
Traducción de errores de dominio a respuestas HTTP
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse

from services.errors import (
    BookingError,
    NotFoundError,
    ValidationError,
    PersistenceError,
    NotificationError,
    SweepInProgressError,
)
from utils.logging_utils import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (SweepInProgressError, status.HTTP_409_CONFLICT),
    (NotificationError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(error: BookingError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, code, exc)
        detail = "Error al procesar la solicitud" if isinstance(exc, PersistenceError) else str(exc)
    else:
        detail = str(exc)
    return JSONResponse(status_code=code, content={"success": False, "detail": detail})


def register_exception_handlers(app) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
