"""
ThoughtJar Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Why:   Anchors ownership: folders and thoughts reference users.id.
Who:   Written by UserService.ensure_user(); never updated or deleted here.

Key design:
    The primary key is the identity provider's subject id, a string. It is
    never generated locally, so the same person always maps to the same row
    no matter which device or session the token came from.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import TIMESTAMP, String, text
from sqlalchemy.orm import Mapped, mapped_column

from thoughtjar.database import Base

ANONYMOUS_DISPLAY_NAME = "anonymous"


def display_name_from_email(email: Optional[str]) -> str:
    """Local part of the email address, or "anonymous" when there is none."""
    if not email:
        return ANONYMOUS_DISPLAY_NAME
    return email.split("@", 1)[0]


class User(Base):
    """A person known to the identity provider who has written at least one thought."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Subject id issued by the identity provider",
    )

    display_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email local-part, or 'anonymous' when the token has no email",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', display_name='{self.display_name}')>"
