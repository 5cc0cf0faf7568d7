"""
Nexus Forum Backend — Shared Response Schemas
==============================================

What:  Error and health payloads shared by every route.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "topic with ID '42' was not found",
            "details": null,
            "request_id": "3f2a9c1e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    Health check response.

    healthy:   {"status": "healthy", "database": "connected", "categories": 4}
    unhealthy: {"status": "unhealthy", "database": "error", "error": "..."}
    """
    status: str = Field(description="healthy or unhealthy")
    database: str = Field(description="connected or error")
    categories: Optional[int] = Field(default=None, description="Number of categories")
    error: Optional[str] = Field(
        default=None, description="Store error message (only when error details are enabled)"
    )
