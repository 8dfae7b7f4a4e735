# spacesync/schemas/common.py
"""Common schemas used across multiple modules."""
from pydantic import BaseModel, Field
from typing import Literal


class ErrorDetail(BaseModel):
    """Stable machine-readable code plus a human message."""
    code: str = Field(..., description="Stable error code, e.g. MISSING_DEVICE_ID")
    message: str = Field(..., description="Human-readable explanation")


class ErrorResponse(BaseModel):
    """
    Envelope for every error returned by the API.

    Usage:
        ErrorResponse(error=ErrorDetail(code="MISSING_CHANGES", message="..."))
    """
    success: Literal[False] = False
    error: ErrorDetail
