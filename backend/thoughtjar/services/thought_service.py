"""
ThoughtJar Backend — Thought Service (Business Logic)
=======================================================

What:  List, create, update and delete thoughts for a verified owner.
Why:   Keeps every ownership rule in one place, independent of HTTP.
How:   Each operation is one SQL statement whose WHERE clause carries both
       the thought id and the owner id. No separate existence check is made,
       so "not yours" and "doesn't exist" are indistinguishable (404 either way).
Who:   Called by routes/thoughts.py with the identity from the auth gate.

Statement shapes:
    list    SELECT * FROM thoughts WHERE owner_id = :owner ORDER BY id
    create  (ensure user) INSERT INTO thoughts (...) VALUES (...) RETURNING *
    update  UPDATE thoughts SET text = COALESCE(:text, text), ...
            WHERE id = :id AND owner_id = :owner RETURNING *
    delete  DELETE FROM thoughts WHERE id = :id AND owner_id = :owner RETURNING id

Error Handling Strategy:
    Missing required fields → ValidationError before touching the store.
    Zero rows matched       → NotFoundError.
    Any SQLAlchemyError     → logged with detail, re-raised as DatabaseError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Integer, String, Text, delete, func, insert, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thoughtjar.exceptions import DatabaseError, NotFoundError, ValidationError
from thoughtjar.models.thought import Thought
from thoughtjar.schemas.common import DeletedResponse
from thoughtjar.schemas.thought import (
    ThoughtCreate,
    ThoughtDelete,
    ThoughtEnvelope,
    ThoughtListResponse,
    ThoughtResponse,
    ThoughtUpdate,
)
from thoughtjar.services.identity_base import VerifiedIdentity
from thoughtjar.services.user_service import UserService, user_service

logger = logging.getLogger(__name__)


def _to_response(thought: Thought) -> ThoughtResponse:
    return ThoughtResponse(
        id=thought.id,
        owner_id=thought.owner_id,
        text=thought.text,
        section=thought.section,
        folder=thought.folder_id,
        created_at=thought.created_at,
    )


def _require_text(value: Optional[str], field: str, message: str) -> None:
    if value is None or not value.strip():
        raise ValidationError(message=message, field=field)


class ThoughtService:
    """
    Business logic layer for thought operations.

    Stateless apart from the UserService it delegates provisioning to;
    every call receives its own database session.
    """

    def __init__(self, users: Optional[UserService] = None):
        self.users = users or user_service

    async def list_thoughts(self, db: AsyncSession, owner_id: str) -> ThoughtListResponse:
        """Every thought the owner has, oldest id first. Empty list is a normal result."""
        try:
            result = await db.execute(
                select(Thought)
                .where(Thought.owner_id == owner_id)
                .order_by(Thought.id)
            )
            thoughts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing thoughts for %s: %s", owner_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve thoughts. Please try again.",
                context={"owner_id": owner_id, "error_type": type(e).__name__},
            )

        logger.debug("Listed %d thoughts for %s", len(thoughts), owner_id)
        return ThoughtListResponse(thoughts=[_to_response(t) for t in thoughts])

    async def create_thought(
        self,
        db: AsyncSession,
        identity: VerifiedIdentity,
        payload: ThoughtCreate,
    ) -> ThoughtEnvelope:
        """
        Create a thought, provisioning the owner's user row on first use.

        Side effect ordering:
            1. Validate text and section (no store access on failure)
            2. Ensure the user row exists
            3. Insert the thought with a server-generated UTC timestamp

        Raises:
            ValidationError: text or section missing/blank (→ 400)
            DatabaseError: store failure, e.g. a folder id that does not exist (→ 500)
        """
        _require_text(payload.text, "text", "Thought text is required")
        _require_text(payload.section, "section", "Thought section is required")

        owner_id = identity.subject_id
        try:
            await self.users.ensure_user(db, identity)

            result = await db.execute(
                insert(Thought)
                .values(
                    owner_id=owner_id,
                    text=payload.text,
                    section=payload.section,
                    folder_id=payload.folder or None,
                    created_at=datetime.now(timezone.utc),
                )
                .returning(Thought)
            )
            thought = result.scalars().one()
        except SQLAlchemyError as e:
            logger.error("Database error creating thought for %s: %s", owner_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the thought. Please try again.",
                context={"owner_id": owner_id, "error_type": type(e).__name__},
            )

        logger.info("Created thought %s for %s (section=%s)", thought.id, owner_id, thought.section)
        return ThoughtEnvelope(thought=_to_response(thought))

    async def update_thought(
        self,
        db: AsyncSession,
        owner_id: str,
        payload: ThoughtUpdate,
    ) -> ThoughtEnvelope:
        """
        Apply a coalescing update: each of text, section and folder is replaced
        only when the payload carries a value for it.

        Raises:
            ValidationError: id missing, or text/section supplied but blank (→ 400)
            NotFoundError: no thought with this id belongs to the owner (→ 404)
            DatabaseError: store failure (→ 500)
        """
        if not payload.id:
            raise ValidationError(message="Missing thought ID", field="id")
        if payload.text is not None:
            _require_text(payload.text, "text", "Thought text cannot be empty")
        if payload.section is not None:
            _require_text(payload.section, "section", "Thought section cannot be empty")

        stmt = (
            update(Thought)
            .where(Thought.id == payload.id, Thought.owner_id == owner_id)
            .values(
                text=func.coalesce(literal(payload.text, Text()), Thought.text),
                section=func.coalesce(literal(payload.section, String()), Thought.section),
                folder_id=func.coalesce(literal(payload.folder, Integer()), Thought.folder_id),
            )
            .returning(Thought)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await db.execute(stmt)
            thought = result.scalars().one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error updating thought %s: %s", payload.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the thought. Please try again.",
                context={"thought_id": payload.id, "error_type": type(e).__name__},
            )

        if thought is None:
            raise NotFoundError(resource="thought", resource_id=payload.id)

        logger.info("Updated thought %s for %s", thought.id, owner_id)
        return ThoughtEnvelope(thought=_to_response(thought))

    async def delete_thought(
        self,
        db: AsyncSession,
        owner_id: str,
        payload: ThoughtDelete,
    ) -> DeletedResponse:
        """
        Delete one of the owner's thoughts. Deleting an id that does not exist
        (or was already deleted) is a 404 every time, with no side effect.
        """
        if not payload.id:
            raise ValidationError(message="Missing thought ID", field="id")

        try:
            result = await db.execute(
                delete(Thought)
                .where(Thought.id == payload.id, Thought.owner_id == owner_id)
                .returning(Thought.id)
                .execution_options(synchronize_session=False)
            )
            deleted_id = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error deleting thought %s: %s", payload.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the thought. Please try again.",
                context={"thought_id": payload.id, "error_type": type(e).__name__},
            )

        if deleted_id is None:
            raise NotFoundError(resource="thought", resource_id=payload.id)

        logger.info("Deleted thought %s for %s", deleted_id, owner_id)
        return DeletedResponse(deleted=True)


# ── Singleton Instance ────────────────────────────────────────────────────
thought_service = ThoughtService()
