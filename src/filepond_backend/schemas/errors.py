from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint: {error, message, request_id, details}."""

    error: str
    message: str
    request_id: str | None = None
    details: object | None = None
