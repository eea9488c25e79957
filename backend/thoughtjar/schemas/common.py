"""
ThoughtJar Backend — Shared Response Schemas
==============================================

What:  Response models that are not tied to a single resource.
Who:   ErrorResponse documents every error body; DeletedResponse is returned
       by both DELETE endpoints; HealthResponse by GET /health.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DeletedResponse(BaseModel):
    """Acknowledgment returned by DELETE /api/thoughts and DELETE /api/folders."""
    deleted: bool = Field(default=True, description="Always true on success")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients need a consistent structure to parse errors programmatically.

    Example:
        {
            "error": "not_found",
            "message": "Thought not found or unauthorized",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    identity_provider: str = Field(
        description="Token verification: available, unavailable, not_configured"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
