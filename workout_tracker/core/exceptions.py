import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for failures the workout core reports to its caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "DOMAIN_ERROR"

    def __init__(self, message: str, *, field: str | None = None, current_state: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.current_state = current_state

    def to_dict(self) -> dict:
        body: dict = {"detail": self.message, "error": self.error}
        if self.field is not None:
            body["field"] = self.field
        if self.current_state is not None:
            body["current_state"] = self.current_state
        return body


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NOT_FOUND"


class InvalidArgumentError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "INVALID_ARGUMENT"


class IllegalStateError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    error = "ILLEGAL_STATE"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    error = "CONFLICT"


async def domain_exception_handler(request: Request, exc: DomainError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.to_dict(), "request_id": request_id},
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "message": "Validation Error", "request_id": request_id},
    )

async def integrity_exception_handler(request: Request, exc: IntegrityError):
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "Database conflict. A record with this identifier likely already exists.",
            "error": ConflictError.error,
            "request_id": request_id,
        },
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled error on %s %s (request_id=%s)", request.method, request.url.path, request_id)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred", "error": "INTERNAL_ERROR", "request_id": request_id},
    )
