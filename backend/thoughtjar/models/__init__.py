"""
ORM models. Importing this package registers every table on Base.metadata,
which Alembic and the test suite rely on.
"""

from thoughtjar.models.user import User
from thoughtjar.models.folder import Folder
from thoughtjar.models.thought import Thought, ThoughtRevision

__all__ = ["User", "Folder", "Thought", "ThoughtRevision"]
