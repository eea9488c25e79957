"""Request/response schemas for /api/folders."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class FolderCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255, description="Folder name (required)")


class FolderUpdate(BaseModel):
    id: Optional[int] = Field(default=None, description="Folder id (required)")
    name: Optional[str] = Field(default=None, max_length=255, description="New name (required)")


class FolderDelete(BaseModel):
    id: Optional[int] = Field(default=None, description="Folder id (required)")


class FolderResponse(BaseModel):
    id: int
    owner_id: str
    name: str
    created_at: datetime


class FolderEnvelope(BaseModel):
    folder: FolderResponse


class FolderListResponse(BaseModel):
    folders: List[FolderResponse]
