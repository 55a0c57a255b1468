"""
TagNotes Backend: Pydantic Response Schemas
===========================================

What:  Pydantic models defining what the API returns.
How:   NotesService converts ORM rows into these; FastAPI serializes them and
       uses them for the OpenAPI docs.

Request bodies are not modelled here: POST/PUT accept any JSON object and
NotesService.validate() applies the note rules, so a broken rule is a 400
with a message naming the field rather than FastAPI's generic 422.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note.
    Who:   Returned by every /api/notes endpoint that yields notes.
    """
    id: int = Field(description="Store-generated note identifier")
    title: str = Field(description="Note title (1-100 characters)")
    content: str = Field(description="Note body (1-999 characters)")
    tags: List[str] = Field(
        default_factory=list,
        description="Normalized tags: lowercase, trimmed, unique",
    )
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the note was last written (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Note with ID '42' was not found",
            "details": {"resource": "note", "resource_id": 42},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container health checks."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
