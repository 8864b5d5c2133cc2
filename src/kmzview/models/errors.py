"""
Error body returned by every JSON endpoint.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorDetail(BaseModel):
    """One field-level problem of a rejected request."""

    field: Optional[str] = Field(None, description="Dotted location of the offending field")
    message: str = Field(..., description="What is wrong with the field")
    code: Optional[str] = Field(None, description="Validator error type")


class ErrorResponse(BaseModel):
    """
    Standard error body.

    ``error_code`` is stable and meant for programs; ``message`` is for
    people. ``details`` carries the archive path, line number or size limit
    that explains the failure, and ``request_id`` matches the
    ``X-Request-ID`` response header.
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["NO_KML_DOCUMENT", "ARCHIVE_ERROR", "BOUNDS_NOT_FOUND"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Context of the failure")
    timestamp: datetime = Field(default_factory=_utc_now, description="UTC time of the error")
    request_id: Optional[str] = Field(None, description="Correlation ID of the request")
    suggestions: Optional[List[str]] = Field(None, description="How to fix the request")
    errors: Optional[List[ErrorDetail]] = Field(
        None, description="Field-level problems of a rejected request"
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime, _info) -> str:
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        return timestamp.isoformat() + "Z"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "PARSE_ERROR",
                "message": "Failed to parse doc.kml: mismatched tag",
                "details": {"path": "doc.kml", "line_number": 12},
                "timestamp": "2025-11-10T15:30:00Z",
                "request_id": "550e8400-e29b-41d4-a716-446655440000",
                "suggestions": ["Check the document for XML syntax errors"],
            }
        }
    )
