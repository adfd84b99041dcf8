from pydantic import BaseModel, Field
from typing import Any, Optional
import uuid


def new_request_id() -> str:
    """Opaque id echoed in every response body for log correlation."""
    return uuid.uuid4().hex


class SuccessResponse(BaseModel):
    """Envelope for successful responses: success flag, request_id and the payload in data."""
    success: bool = Field(default=True)
    request_id: str = Field(default_factory=new_request_id)
    data: Optional[Any] = None


class ErrorBody(BaseModel):
    code: str
    message: Any
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope produced by the exception handlers."""
    success: bool = Field(default=False)
    request_id: str = Field(default_factory=new_request_id)
    error: ErrorBody
