"""
Tutorials API: Pydantic Request/Response Schemas
================================================

What:  Pydantic models defining the API contract for the tutorial resource.
How:   FastAPI validates request bodies against these models, serializes
       responses through them and generates the OpenAPI document from them.

Schemas are separate from the document layout in models/tutorial.py: the API
exposes `id` as a string while the store keeps an ObjectId under `_id`.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

EMPTY_CONTENT_MESSAGE = "Content can not be empty!"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TutorialCreate(BaseModel):
    """
    Body of POST /api/tutorials.

    `title` is required and must contain something other than whitespace.
    """

    title: str = Field(description="Tutorial title (required, non-blank)")
    description: Optional[str] = Field(default=None, description="Free-text description")
    published: bool = Field(default=False, description="Whether the tutorial is published")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError(EMPTY_CONTENT_MESSAGE)
        return stripped


class TutorialUpdate(BaseModel):
    """
    Body of PUT /api/tutorials/{id}: a partial update.

    Fields left out of the body are left unchanged. `title` and `published`
    may be omitted but not set to null; `description` may be cleared with null.
    """

    title: Optional[str] = Field(default=None, description="New title (non-blank)")
    description: Optional[str] = Field(default=None, description="New description or null")
    published: Optional[bool] = Field(default=None, description="New published flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("title can not be empty")
        return v.strip()

    @field_validator("published")
    @classmethod
    def validate_published(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("published can not be null")
        return v

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TutorialResponse(BaseModel):
    """Full representation of a tutorial record."""

    id: str = Field(description="Unique tutorial identifier (24-hex ObjectId)")
    title: str
    description: Optional[str] = None
    published: bool = False
    created_at: datetime = Field(description="When the record was created (UTC)")
    updated_at: datetime = Field(description="When the record was last modified (UTC)")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "TutorialResponse":
        return cls(
            id=str(document["_id"]),
            title=document["title"],
            description=document.get("description"),
            published=document.get("published", False),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )


class MessageResponse(BaseModel):
    message: str


class DeleteResponse(BaseModel):
    message: str = Field(default="Tutorial was deleted successfully!")
    id: str = Field(description="Identifier of the deleted tutorial")


class DeleteAllResponse(BaseModel):
    message: str
    deleted_count: int = Field(ge=0, description="Number of tutorials removed")


class HealthResponse(BaseModel):
    """
    Body of GET /health.

    `db` reflects the connector's cached state; it is never the result of a
    live round-trip to the database.
    """

    status: str = Field(description="ok or error")
    db: str = Field(description="connected or disconnected")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since the process started")


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx answer.

    Example:
        {
            "error": "not_found",
            "message": "Not found Tutorial with id 65f0c0ffee0000000000abcd",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
