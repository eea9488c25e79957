"""
ThoughtJar Backend — Folder SQLAlchemy Model
==============================================

What:  ORM model representing the `folders` table.
Who:   Used by FolderService for every folder operation.

Constraints:
    - owner_id → users.id ON DELETE CASCADE
    - UNIQUE (owner_id, name): names are unique per owner, not globally.
      A duplicate insert or rename surfaces as an IntegrityError, which the
      service reports as a DatabaseError.
"""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from thoughtjar.database import Base


class Folder(Base):
    """A named, owner-private group of thoughts."""

    __tablename__ = "folders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    owner_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_folders_owner_id_name"),
        Index("idx_folders_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, owner_id='{self.owner_id}', name='{self.name}')>"
