"""Common schemas used across the API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class RankedResult(BaseModel):
    """Fields shared by every cached ranking response."""

    cache_key: str = Field(alias="cacheKey")
    expires_at: datetime = Field(alias="expiresAt")

    model_config = {"populate_by_name": True}
