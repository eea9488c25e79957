"""
ThoughtJar Backend — Thought SQLAlchemy Models
================================================

What:  ORM models for the `thoughts` table and its `thought_updates` log.
Who:   Thought is used by ThoughtService; ThoughtRevision is schema only.

Table Design Rationale:
    - owner_id: every query filters on it (indexed)
    - section: short caller-supplied tag such as "todo" or "idea"
    - folder_id: optional; ON DELETE SET NULL so a folder can disappear
      without taking its thoughts with it. FolderService still clears the
      references explicitly before deleting, in the same transaction.
    - text, section and folder_id are the only mutable columns.

ThoughtRevision:
    Append-only snapshot of a thought's text. No handler writes it yet; it
    exists so an edit history can be added without a schema migration.
    Rows are removed with their thought (ON DELETE CASCADE).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import TIMESTAMP, ForeignKey, Index, Integer, String, Text
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column

from thoughtjar.database import Base


class Thought(Base):
    """A short personal note owned by exactly one user."""

    __tablename__ = "thoughts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    owner_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    section: Mapped[str] = mapped_column(String(50), nullable=False)

    folder_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_thoughts_owner_id", "owner_id"),
        Index("idx_thoughts_folder_id", "folder_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Thought(id={self.id}, owner_id='{self.owner_id}', "
            f"section='{self.section}', folder_id={self.folder_id})>"
        )


class ThoughtRevision(Base):
    """Snapshot of a thought's text at some point in its history."""

    __tablename__ = "thought_updates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    thought_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("thoughts.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )
