from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload."""
    status: str = Field("ok", description="Always 'ok' while the process serves requests")
    version: str = Field(..., description="Application version")
    environment: Optional[str] = Field(None, description="Deployment label, e.g. dev or prod")


class ErrorInfo(BaseModel):
    """What went wrong, as raised by a service or by request validation."""
    type: str = Field(
        ...,
        description="Error code, e.g. not_found, insufficient_stock, capacity_exceeded, credit_limit_exceeded",
    )
    message: str = Field(..., description="Human-readable explanation")
    details: Optional[Any] = Field(default=None, description="Offending ids, quantities or validation issues")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo
    correlation_id: Optional[str] = Field(default=None, description="Matches the X-Correlation-ID header")
    path: Optional[str] = Field(default=None)
    method: Optional[str] = Field(default=None)
    timestamp: datetime = Field(..., description="When the error was produced (UTC)")
