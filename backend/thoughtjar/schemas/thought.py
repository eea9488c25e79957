"""
ThoughtJar Backend — Thought Request/Response Schemas
=======================================================

What:  Pydantic models defining the /api/thoughts contract.
How:   Request models declare every field optional. Required-field checks
       live in ThoughtService so that a missing id or text yields the
       application's 400 `validation_error` body with the field name, rather
       than a generic schema error.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ThoughtCreate(BaseModel):
    """Body of POST /api/thoughts."""
    text: Optional[str] = Field(default=None, description="Thought text (required, non-empty)")
    section: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Caller-defined category tag, e.g. 'todo' (required)",
    )
    folder: Optional[int] = Field(default=None, description="Folder id to file the thought under")


class ThoughtUpdate(BaseModel):
    """
    Body of PUT /api/thoughts.

    Omitted (or null) fields keep their stored value. A folder reference
    therefore cannot be cleared through this endpoint; deleting the folder
    clears it.
    """
    id: Optional[int] = Field(default=None, description="Thought id (required)")
    text: Optional[str] = Field(default=None)
    section: Optional[str] = Field(default=None, max_length=50)
    folder: Optional[int] = Field(default=None)


class ThoughtDelete(BaseModel):
    """Body of DELETE /api/thoughts."""
    id: Optional[int] = Field(default=None, description="Thought id (required)")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ThoughtResponse(BaseModel):
    """A stored thought as returned to its owner."""
    id: int = Field(description="Store-assigned thought id")
    owner_id: str = Field(description="Identity provider subject id of the owner")
    text: str
    section: str
    folder: Optional[int] = Field(default=None, description="Folder id, or null")
    created_at: datetime = Field(description="Creation timestamp (UTC)")


class ThoughtEnvelope(BaseModel):
    """Single-thought response: {"thought": {...}}."""
    thought: ThoughtResponse


class ThoughtListResponse(BaseModel):
    """All of the caller's thoughts. Never paginated."""
    thoughts: List[ThoughtResponse]
