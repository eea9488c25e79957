"""
ThoughtJar Backend — Folder Service
=====================================

What:  List, create, rename and delete an owner's folders.
How:   Same shape as ThoughtService: every statement is scoped by owner id,
       zero matched rows means 404.

Folder names are unique per owner (uq_folders_owner_id_name). A duplicate
create or rename surfaces as DatabaseError (500), not as a dedicated
conflict status.

Deleting a folder detaches its thoughts (folder_id → NULL) before removing
the folder row. Both statements run on the request's session, so they
commit or roll back together.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thoughtjar.exceptions import DatabaseError, NotFoundError, ValidationError
from thoughtjar.models.folder import Folder
from thoughtjar.models.thought import Thought
from thoughtjar.schemas.common import DeletedResponse
from thoughtjar.schemas.folder import (
    FolderCreate,
    FolderDelete,
    FolderEnvelope,
    FolderListResponse,
    FolderResponse,
    FolderUpdate,
)
from thoughtjar.services.identity_base import VerifiedIdentity
from thoughtjar.services.user_service import UserService, user_service

logger = logging.getLogger(__name__)


def _to_response(folder: Folder) -> FolderResponse:
    return FolderResponse(
        id=folder.id,
        owner_id=folder.owner_id,
        name=folder.name,
        created_at=folder.created_at,
    )


def _require_name(name: Optional[str]) -> None:
    if name is None or not name.strip():
        raise ValidationError(message="Folder name is required", field="name")


class FolderService:
    def __init__(self, users: Optional[UserService] = None):
        self.users = users or user_service

    async def list_folders(self, db: AsyncSession, owner_id: str) -> FolderListResponse:
        try:
            result = await db.execute(
                select(Folder)
                .where(Folder.owner_id == owner_id)
                .order_by(Folder.id)
            )
            folders = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing folders for %s: %s", owner_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve folders. Please try again.",
                context={"owner_id": owner_id, "error_type": type(e).__name__},
            )

        return FolderListResponse(folders=[_to_response(f) for f in folders])

    async def create_folder(
        self,
        db: AsyncSession,
        identity: VerifiedIdentity,
        payload: FolderCreate,
    ) -> FolderEnvelope:
        """
        Create a folder for the caller.

        The owner row is provisioned first, same as for thoughts, so a
        caller whose first write is a folder does not trip the owner
        foreign key.

        Raises:
            ValidationError: name missing or blank (→ 400)
            DatabaseError: duplicate name for this owner, or store failure (→ 500)
        """
        _require_name(payload.name)

        owner_id = identity.subject_id
        try:
            await self.users.ensure_user(db, identity)
            result = await db.execute(
                insert(Folder)
                .values(
                    owner_id=owner_id,
                    name=payload.name,
                    created_at=datetime.now(timezone.utc),
                )
                .returning(Folder)
            )
            folder = result.scalars().one()
        except SQLAlchemyError as e:
            logger.error("Database error creating folder %r for %s: %s", payload.name, owner_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the folder. Please try again.",
                context={"owner_id": owner_id, "error_type": type(e).__name__},
            )

        logger.info("Created folder %s (%r) for %s", folder.id, folder.name, owner_id)
        return FolderEnvelope(folder=_to_response(folder))

    async def update_folder(
        self,
        db: AsyncSession,
        owner_id: str,
        payload: FolderUpdate,
    ) -> FolderEnvelope:
        """Rename a folder. Both id and name are required."""
        if not payload.id:
            raise ValidationError(message="Missing folder ID", field="id")
        _require_name(payload.name)

        try:
            result = await db.execute(
                update(Folder)
                .where(Folder.id == payload.id, Folder.owner_id == owner_id)
                .values(name=payload.name)
                .returning(Folder)
                .execution_options(synchronize_session=False)
            )
            folder = result.scalars().one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error renaming folder %s: %s", payload.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the folder. Please try again.",
                context={"folder_id": payload.id, "error_type": type(e).__name__},
            )

        if folder is None:
            raise NotFoundError(resource="folder", resource_id=payload.id)

        logger.info("Renamed folder %s to %r for %s", folder.id, folder.name, owner_id)
        return FolderEnvelope(folder=_to_response(folder))

    async def delete_folder(
        self,
        db: AsyncSession,
        owner_id: str,
        payload: FolderDelete,
    ) -> DeletedResponse:
        """
        Detach the owner's thoughts from the folder, then delete it.

        The detach is scoped to the caller's own thoughts. If the folder
        turns out not to exist (or belongs to someone else) the detach has
        matched nothing and the request still ends in 404.
        """
        if not payload.id:
            raise ValidationError(message="Missing folder ID", field="id")

        try:
            detached = await db.execute(
                update(Thought)
                .where(Thought.folder_id == payload.id, Thought.owner_id == owner_id)
                .values(folder_id=None)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(
                delete(Folder)
                .where(Folder.id == payload.id, Folder.owner_id == owner_id)
                .returning(Folder.id)
                .execution_options(synchronize_session=False)
            )
            deleted_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error deleting folder %s: %s", payload.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the folder. Please try again.",
                context={"folder_id": payload.id, "error_type": type(e).__name__},
            )

        if deleted_id is None:
            raise NotFoundError(resource="folder", resource_id=payload.id)

        logger.info(
            "Deleted folder %s for %s (%d thoughts detached)",
            deleted_id, owner_id, detached.rowcount,
        )
        return DeletedResponse(deleted=True)


folder_service = FolderService()
