"""
Pydantic request/response schemas.

API contracts are kept apart from the ORM models: the wire name of a
thought's folder reference is `folder`, the column is `folder_id`, and
owner-internal tables (users) are never exposed directly.
"""
