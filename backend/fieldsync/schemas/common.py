"""
FieldSync Backend: Shared Response Schemas
===========================================

What:  The error envelope shared by every endpoint, and the health payload.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Error envelope for all API errors.

    Example:
        {
            "success": false,
            "message": "Error interno al sincronizar el informe.",
            "error": "null value in column \\"tarifa\\" violates not-null constraint"
        }
    """
    success: bool = False
    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(
        default=None,
        description="Datastore diagnostic (only for persistence failures)",
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
