from typing import Generic, TypeVar, Optional
from pydantic import BaseModel

T = TypeVar("T")

class ResponseBase(BaseModel, Generic[T]):
    data: Optional[T] = None
    message: Optional[str] = None
    success: bool = True

class StandardResponse(ResponseBase[T]):
    pass


class ErrorResponse(BaseModel):
    detail: str
    error: str
    field: Optional[str] = None
    current_state: Optional[str] = None
    request_id: Optional[str] = None


# Shared `responses=` mapping for routes that surface domain errors.
DOMAIN_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Invalid argument"},
    404: {"model": ErrorResponse, "description": "Referenced record not found"},
    409: {"model": ErrorResponse, "description": "Illegal state or conflict"},
}
