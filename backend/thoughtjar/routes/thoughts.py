"""
ThoughtJar Backend — Thought Route Handlers
=============================================

What:  GET/POST/PUT/DELETE /api/thoughts.
How:   Every route sits behind the bearer-token gate (router dependency).
       Handlers pull the verified identity and a session, then delegate to
       ThoughtService. Ids travel in the JSON body, including for DELETE.
Who:   Called by the mobile client.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from thoughtjar.database import get_db_session
from thoughtjar.middleware.auth import require_identity
from thoughtjar.schemas.common import DeletedResponse, ErrorResponse
from thoughtjar.schemas.thought import (
    ThoughtCreate,
    ThoughtDelete,
    ThoughtEnvelope,
    ThoughtListResponse,
    ThoughtUpdate,
)
from thoughtjar.services.identity_base import VerifiedIdentity
from thoughtjar.services.thought_service import thought_service


# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(
    prefix="/api",
    tags=["Thoughts"],
    dependencies=[Depends(require_identity)],
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)


@router.get(
    "/thoughts",
    response_model=ThoughtListResponse,
    summary="List the caller's thoughts",
)
async def list_thoughts(
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> ThoughtListResponse:
    return await thought_service.list_thoughts(db=db, owner_id=identity.subject_id)


@router.post(
    "/thoughts",
    response_model=ThoughtEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Text or section missing", "model": ErrorResponse}},
    summary="Create a thought",
    description=(
        "Creates a thought owned by the caller. The caller's user record is "
        "created on their first write."
    ),
)
async def create_thought(
    payload: ThoughtCreate,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> ThoughtEnvelope:
    return await thought_service.create_thought(db=db, identity=identity, payload=payload)


@router.put(
    "/thoughts",
    response_model=ThoughtEnvelope,
    responses={
        400: {"description": "Missing thought ID", "model": ErrorResponse},
        404: {"description": "Thought not found or not owned by caller", "model": ErrorResponse},
    },
    summary="Update a thought",
    description="Fields omitted from the body (or sent as null) keep their current value.",
)
async def update_thought(
    payload: ThoughtUpdate,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> ThoughtEnvelope:
    return await thought_service.update_thought(db=db, owner_id=identity.subject_id, payload=payload)


@router.delete(
    "/thoughts",
    response_model=DeletedResponse,
    responses={
        400: {"description": "Missing thought ID", "model": ErrorResponse},
        404: {"description": "Thought not found or not owned by caller", "model": ErrorResponse},
    },
    summary="Delete a thought",
)
async def delete_thought(
    payload: ThoughtDelete,
    identity: VerifiedIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DeletedResponse:
    return await thought_service.delete_thought(db=db, owner_id=identity.subject_id, payload=payload)
