# Middleware package init
"""
ThoughtJar Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request, plus the bearer-token
       gate applied to every resource route.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Router → [Auth gate] → Handler

    1. Request ID: correlation ID for logs and error bodies
    2. Logging: one access line per request with status and duration
    3. CORS / GZip: FastAPI's stock middleware
    4. Auth gate (auth.py): a router dependency, not ASGI middleware,
       so /health stays public
"""
