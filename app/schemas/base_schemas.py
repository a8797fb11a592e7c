"""Base schemas for common response patterns."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class BaseResponse(BaseModel, Generic[T]):
    """Base response model with generic data field."""

    success: bool = True
    message: str = "Success"
    data: T | None = None


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    error_code: str | None = None
    details: dict[str, Any] | None = None
