"""
ThoughtJar Backend — Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services receive an AsyncSession plus the verified caller and return
       response schemas. Routes never build SQL themselves.

Service Inventory:
    - IdentityVerifier (abstract): bearer token → VerifiedIdentity
    - JWTIdentityVerifier: JWKS / shared-secret JWT verification
    - UserService: lazy provisioning of the local user row
    - ThoughtService: owner-scoped thought CRUD
    - FolderService: owner-scoped folder CRUD, detach-on-delete
"""
