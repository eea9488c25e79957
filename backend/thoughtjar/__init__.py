"""
ThoughtJar Backend — Application Package Initializer
=====================================================

What: Marks the `thoughtjar` directory as a Python package.
Who:  Used by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows the same layered layout for every resource:

    ┌─────────────────────────────────────┐
    │   Routes (API Layer) + Auth Gate    │  ← HTTP concerns, bearer verification
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ownership-scoped statements
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never build SQL; services never see HTTP headers. The only object
    crossing the boundary from the auth gate to a service is the verified
    identity (subject id + optional email).
"""

__version__ = "1.0.0"
