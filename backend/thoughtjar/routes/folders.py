"""
ThoughtJar Backend — Folder Route Handlers
============================================

What:  GET/POST/PUT/DELETE /api/folders, all behind the bearer-token gate.
Note:  DELETE detaches the caller's thoughts from the folder first; the
       thoughts themselves survive with folder = null.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from thoughtjar.database import get_db_session
from thoughtjar.middleware.auth import require_identity
from thoughtjar.schemas.common import DeletedResponse, ErrorResponse
from thoughtjar.schemas.folder import (
    FolderCreate,
    FolderDelete,
    FolderEnvelope,
    FolderListResponse,
    FolderUpdate,
)
from thoughtjar.services.folder_service import folder_service
from thoughtjar.services.identity_base import VerifiedIdentity

router = APIRouter(
    prefix="/api",
    tags=["Folders"],
    dependencies=[Depends(require_identity)],
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        500: {"description": "Server error (including a duplicate folder name)", "model": ErrorResponse},
    },
)


@router.get("/folders", response_model=FolderListResponse, summary="List the caller's folders")
async def list_folders(
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderListResponse:
    return await folder_service.list_folders(db=db, owner_id=identity.subject_id)


@router.post(
    "/folders",
    response_model=FolderEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Folder name missing", "model": ErrorResponse}},
    summary="Create a folder",
)
async def create_folder(
    payload: FolderCreate,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderEnvelope:
    return await folder_service.create_folder(db=db, identity=identity, payload=payload)


@router.put(
    "/folders",
    response_model=FolderEnvelope,
    responses={
        400: {"description": "Folder ID or name missing", "model": ErrorResponse},
        404: {"description": "Folder not found or not owned by caller", "model": ErrorResponse},
    },
    summary="Rename a folder",
)
async def update_folder(
    payload: FolderUpdate,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderEnvelope:
    return await folder_service.update_folder(db=db, owner_id=identity.subject_id, payload=payload)


@router.delete(
    "/folders",
    response_model=DeletedResponse,
    responses={
        400: {"description": "Missing folder ID", "model": ErrorResponse},
        404: {"description": "Folder not found or not owned by caller", "model": ErrorResponse},
    },
    summary="Delete a folder and detach its thoughts",
)
async def delete_folder(
    payload: FolderDelete,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    return await folder_service.delete_folder(db=db, owner_id=identity.subject_id, payload=payload)
