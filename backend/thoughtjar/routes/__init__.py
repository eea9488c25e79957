# Routes package init
"""
ThoughtJar Backend — API Routes Package
=========================================

Route Inventory:
    - thoughts.py: GET/POST/PUT/DELETE /api/thoughts   (bearer token required)
    - folders.py:  GET/POST/PUT/DELETE /api/folders    (bearer token required)
    - health.py:   GET /health                         (public)

Routes stay thin: read the body, take the identity from the auth gate,
call a service, return its schema. Ownership rules live in the services.
"""
