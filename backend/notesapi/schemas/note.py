"""
Notes API - Pydantic Request/Response Schemas
==============================================

What:  Pydantic models defining the JSON contract of the API.
How:   Route handlers validate request bodies with NoteIn and serialize
       results through the response models; FastAPI also uses them for the
       OpenAPI document.

Schemas are separate from the SQLAlchemy model: the request body has no id,
and the storage layer never sees unvalidated input.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, StrictStr


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteIn(BaseModel):
    """
    What:  Body of POST /api/v1/notes and PUT /api/v1/notes/{id}.

    Both fields are required, must be JSON strings and must not be empty.
    Whitespace-only values count as non-empty. Any other keys (including an
    "id") are ignored.
    """
    title: StrictStr = Field(min_length=1, description="Note title")
    content: StrictStr = Field(min_length=1, description="Note body")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a stored note."""
    id: int = Field(description="Server-assigned note identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")

    model_config = {"from_attributes": True}


class SearchResponse(BaseModel):
    """
    What:  Result of GET /api/v1/notes/search.

    `search_result` is an empty list (not null) when nothing matches.
    """
    search_result: List[NoteResponse] = Field(description="Matching notes")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID '7' was not found",
            "request_id": "1f0c9a2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response: service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
