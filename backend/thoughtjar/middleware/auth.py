"""
ThoughtJar Backend — Authorization Gate
=========================================

What:  FastAPI dependency that turns `Authorization: Bearer <token>` into a
       VerifiedIdentity, or rejects the request with 401.
Why:   Declared once on each resource router (`dependencies=[...]`), so no
       thought or folder route can be reached without it.
How:   1. Header absent, not "Bearer "-prefixed, or empty token → 401 without
          consulting the verifier
       2. verifier.verify(token) → identity stored on request.state
       3. IdentityVerificationError → WARNING log with the reason, then the
          same uniform 401 as step 1

Not middleware in the Starlette sense: a dependency runs only for the routes
that declare it, which keeps /health and the OpenAPI docs public.

FastAPI rejects an undecodable JSON body before dependencies run. The
RequestValidationError handler in main.py therefore calls authenticate()
itself for PROTECTED_PREFIX paths, so such requests still get 401 first.
"""

import logging

from fastapi import Depends, Request

from thoughtjar.exceptions import AuthenticationError, IdentityVerificationError
from thoughtjar.middleware.request_id import request_id_var
from thoughtjar.services.identity_base import IdentityVerifier, VerifiedIdentity
from thoughtjar.services.identity_service import identity_verifier

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Routers carrying the gate; a body rejected before dependencies run must
# still be answered with 401 when these paths lack a valid credential.
PROTECTED_PREFIX = "/api/"


def get_identity_verifier() -> IdentityVerifier:
    """Overridable seam; tests swap in a fake via app.dependency_overrides."""
    return identity_verifier


def resolve_identity_verifier(request: Request) -> IdentityVerifier:
    """The verifier a route would receive, honoring dependency_overrides."""
    provider = request.app.dependency_overrides.get(get_identity_verifier, get_identity_verifier)
    return provider()


async def authenticate(request: Request, verifier: IdentityVerifier) -> VerifiedIdentity:
    """
    Check the bearer credential and record the identity on request.state.

    Raises:
        AuthenticationError: missing, non-bearer, empty or rejected token
    """
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthenticationError(context={"reason": "missing or non-bearer credential"})

    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError(context={"reason": "empty bearer token"})

    try:
        identity = await verifier.verify(token)
    except IdentityVerificationError as e:
        logger.warning(
            "[%s] Token rejected: %s | Context: %s",
            request_id_var.get(""), e.message, e.context,
        )
        raise AuthenticationError(context={"reason": e.message})

    request.state.identity = identity
    return identity


async def require_identity(
    request: Request,
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    # FastAPI caches dependencies per request, so the router-level gate and
    # the handler's own Depends(require_identity) verify the token once.
    return await authenticate(request, verifier)
