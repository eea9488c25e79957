"""
ThoughtJar Backend — User Provisioning Service
================================================

What:  The single "ensure user exists" operation.
Why:   Users are never registered explicitly. The identity provider already
       knows them; this service only has to mirror a row locally the first
       time someone writes something, so owner foreign keys have a target.
How:   Look up by subject id; insert when absent. The insert runs inside a
       SAVEPOINT so that two first-writes racing for the same subject end
       with one row and no error.
Who:   Called by ThoughtService.create_thought() and
       FolderService.create_folder() before their own insert. Not called by
       the auth gate: read-only callers never get a row.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from thoughtjar.models.user import User, display_name_from_email
from thoughtjar.services.identity_base import VerifiedIdentity

logger = logging.getLogger(__name__)


class UserService:
    """Mirrors identity-provider users into the local `users` table."""

    async def ensure_user(self, db: AsyncSession, identity: VerifiedIdentity) -> bool:
        """
        Make sure a `users` row exists for this identity.

        Precondition check first, so the common case (user already known)
        costs a single primary-key lookup and never writes.

        Returns:
            True if a row was inserted by this call, False if it already existed.

        Raises:
            SQLAlchemyError: any store failure other than the duplicate-key
                race; callers translate it into DatabaseError.
        """
        result = await db.execute(
            select(User.id).where(User.id == identity.subject_id)
        )
        if result.scalar_one_or_none() is not None:
            return False

        try:
            async with db.begin_nested():
                await db.execute(
                    insert(User).values(
                        id=identity.subject_id,
                        display_name=display_name_from_email(identity.email),
                        email=identity.email,
                        created_at=datetime.now(timezone.utc),
                    )
                )
        except IntegrityError:
            # Another request provisioned the same subject between our
            # SELECT and INSERT; the savepoint rollback leaves the session usable.
            logger.info("User %s was provisioned concurrently", identity.subject_id)
            return False

        logger.info("Provisioned user %s", identity.subject_id)
        return True


user_service = UserService()
