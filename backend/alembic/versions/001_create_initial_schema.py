"""Create users, folders, thoughts and thought_updates

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  The whole ThoughtJar schema.
How:   Tables are created parent-first (users → folders → thoughts →
       thought_updates) so every foreign key has a target.

Ownership:
    folders.owner_id and thoughts.owner_id reference users.id and cascade on
    user deletion. thoughts.folder_id is nullable and set to NULL when its
    folder is deleted at the database level; the API also detaches
    explicitly before deleting a folder.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        # Identity-provider subject id (Firebase uid, Supabase user id, ...)
        sa.Column("id", sa.String(255), nullable=False, comment="Identity provider subject id"),
        sa.Column(
            "display_name",
            sa.String(255),
            nullable=False,
            comment="Email local part, or 'anonymous'",
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "folders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        # Folder names are unique per owner, not globally
        sa.UniqueConstraint("owner_id", "name", name="uq_folders_owner_id_name"),
    )
    op.create_index("idx_folders_owner_id", "folders", ["owner_id"])

    op.create_table(
        "thoughts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("section", sa.String(50), nullable=False, comment="e.g. todo, idea, journal"),
        sa.Column("folder_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["folder_id"], ["folders.id"], ondelete="SET NULL"),
    )
    # Every list query filters by owner; folder delete filters by folder
    op.create_index("idx_thoughts_owner_id", "thoughts", ["owner_id"])
    op.create_index("idx_thoughts_folder_id", "thoughts", ["folder_id"])

    op.create_table(
        "thought_updates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("thought_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["thought_id"], ["thoughts.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    op.drop_table("thought_updates")
    op.drop_index("idx_thoughts_folder_id", table_name="thoughts")
    op.drop_index("idx_thoughts_owner_id", table_name="thoughts")
    op.drop_table("thoughts")
    op.drop_index("idx_folders_owner_id", table_name="folders")
    op.drop_table("folders")
    op.drop_table("users")
