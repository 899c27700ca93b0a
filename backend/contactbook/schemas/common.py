"""
ContactBook Backend - Shared Pydantic Schemas
==============================================

What:  Base model configuration plus the error/health response shapes.
Why:   Every payload on the wire uses camelCase keys (``userId``,
       ``createdAt``, ``requestId``) while Python code stays snake_case.
How:   CamelModel sets an alias generator; FastAPI serializes response
       models by alias.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for response models: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldViolation(BaseModel):
    """One failed check: dotted location (``body.email``) and message."""

    path: str
    message: str


class ErrorBody(CamelModel):
    code: str = Field(description="Machine-readable error code, e.g. DUPLICATE_EMAIL")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(
        default=None,
        description="Structured context; a list of FieldViolation for VALIDATION_ERROR",
    )
    request_id: str = Field(description="Correlation ID, also sent as X-Request-Id")


class ErrorResponse(BaseModel):
    """
    Standardized error envelope for all API errors.

    Example:
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "details": [{"path": "body.phone", "message": "..."}],
                "requestId": "3f0c0a51-..."
            }
        }
    """

    error: ErrorBody


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(CamelModel):
    """Returned by GET /health for monitoring and load balancer probes."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


