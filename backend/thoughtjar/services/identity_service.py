"""
ThoughtJar Backend — JWT Identity Verifier
============================================

What:  Concrete IdentityVerifier that checks signed JWT bearer tokens.
Why:   Firebase ID tokens and Supabase access tokens are both JWTs; verifying
       them locally needs only the provider's public keys (or shared secret),
       not a network round-trip per request.
How:   python-jose validates signature, expiry, audience and issuer. Signing
       keys come from one of two sources:
         - a JSON Web Key Set URL (Firebase, Auth0, Cognito, ...), fetched
           with httpx, cached for auth_jwks_cache_seconds, and retried with
           tenacity on transient HTTP failures;
         - a shared HMAC secret (Supabase-style HS256 tokens).
Who:   The auth gate calls verify() once per request.

Key rotation:
    Providers rotate keys by publishing a new `kid`. A token whose kid is not
    in the cache triggers one forced refetch (rate-limited to one per
    _MIN_FORCED_REFRESH_SECONDS) before the token is rejected.

Failure policy:
    Every problem is reported as IdentityVerificationError with the reason
    in `context`. The gate logs it and answers 401; the reason never reaches
    the caller.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from thoughtjar.config import Settings, settings
from thoughtjar.exceptions import IdentityVerificationError
from thoughtjar.services.identity_base import IdentityVerifier, VerifiedIdentity

logger = logging.getLogger(__name__)

_MIN_FORCED_REFRESH_SECONDS = 30.0


class JWTIdentityVerifier(IdentityVerifier):
    """
    Verifies JWT bearer tokens against a JWKS URL or a shared secret.

    When both are configured the key set wins; the secret is only used for
    providers without published keys.
    """

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        jwt_secret: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        jwks_cache_seconds: int = 3600,
        http_timeout: float = 5.0,
        retry_attempts: int = 3,
        retry_min_wait: int = 1,
        retry_max_wait: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            transport: Optional httpx transport; tests pass httpx.MockTransport
                       to serve a key set without network access.
        """
        self.jwks_url = jwks_url
        self.jwt_secret = jwt_secret
        self.algorithms = algorithms or (["RS256"] if jwks_url else ["HS256"])
        self.audience = audience
        self.issuer = issuer
        self.jwks_cache_seconds = jwks_cache_seconds
        self.http_timeout = http_timeout
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        self._transport = transport

        self._keys: Dict[str, Dict[str, Any]] = {}
        self._fetched_at: float = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, config: Settings) -> "JWTIdentityVerifier":
        return cls(
            jwks_url=config.jwks_url,
            jwt_secret=config.auth_jwt_secret,
            algorithms=config.jwt_algorithms_list,
            audience=config.token_audience,
            issuer=config.token_issuer,
            jwks_cache_seconds=config.auth_jwks_cache_seconds,
            http_timeout=config.auth_http_timeout,
            retry_attempts=config.retry_max_attempts,
            retry_min_wait=config.retry_min_wait,
            retry_max_wait=config.retry_max_wait,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.jwks_url or self.jwt_secret)

    # ── Verification ──────────────────────────────────────────────────────

    async def verify(self, token: str) -> VerifiedIdentity:
        """
        Verify a bearer token and return the identity it asserts.

        Flow:
            1. Read the unverified header (alg, kid) to choose a key
            2. Resolve the key (cached key set, forced refresh, or secret)
            3. Decode with signature, exp, aud and iss checks
            4. Require a non-empty `sub` claim; `email` is optional
        """
        if not token:
            raise IdentityVerificationError("Empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as e:
            raise IdentityVerificationError(
                "Malformed token", context={"reason": str(e)}
            )

        alg = header.get("alg")
        if alg not in self.algorithms:
            raise IdentityVerificationError(
                "Token algorithm not accepted",
                context={"alg": alg, "accepted": self.algorithms},
            )

        key = await self._resolve_key(header)

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except ExpiredSignatureError:
            raise IdentityVerificationError("Token expired")
        except JOSEError as e:
            raise IdentityVerificationError(
                "Invalid token", context={"reason": str(e)}
            )

        subject = claims.get("sub")
        if not subject or not isinstance(subject, str):
            raise IdentityVerificationError("Token has no subject")

        email = claims.get("email") or None
        return VerifiedIdentity(subject_id=subject, email=email)

    async def _resolve_key(self, header: Dict[str, Any]) -> Any:
        if self.jwks_url:
            kid = header.get("kid")
            keys = await self._get_signing_keys()
            if kid is None:
                # No kid: let python-jose try every published key
                return {"keys": list(keys.values())}
            if kid not in keys:
                keys = await self._get_signing_keys(force=True)
            if kid not in keys:
                raise IdentityVerificationError(
                    "Unknown signing key", context={"kid": kid}
                )
            return keys[kid]

        if self.jwt_secret:
            return self.jwt_secret

        raise IdentityVerificationError("No token verification key configured")

    # ── Key Set Cache ─────────────────────────────────────────────────────

    async def _get_signing_keys(self, force: bool = False) -> Dict[str, Dict[str, Any]]:
        """
        Return the cached key set, refetching when stale or when forced.

        A failed refetch keeps serving the previous keys (if any) so a short
        provider outage does not lock every user out.
        """
        async with self._lock:
            age = time.monotonic() - self._fetched_at
            if self._keys and not force and age < self.jwks_cache_seconds:
                return self._keys
            if self._keys and force and age < _MIN_FORCED_REFRESH_SECONDS:
                return self._keys

            try:
                self._keys = await self._fetch_jwks()
                self._fetched_at = time.monotonic()
            except IdentityVerificationError:
                if not self._keys:
                    raise
                logger.warning(
                    "Signing key refresh failed; continuing with %d cached keys",
                    len(self._keys),
                )
            return self._keys

    async def _fetch_jwks(self) -> Dict[str, Dict[str, Any]]:
        """
        Download the provider's JSON Web Key Set.

        Retries transient HTTP failures with exponential backoff + jitter.
        Returns a dict keyed by `kid`.
        """
        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=self.http_timeout, transport=self._transport
            ) as client:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(httpx.HTTPError),
                    stop=stop_after_attempt(self.retry_attempts),
                    wait=wait_exponential_jitter(
                        multiplier=self.retry_min_wait,
                        max=self.retry_max_wait,
                        jitter=1,
                    ),
                    before_sleep=before_sleep_log(logger, logging.WARNING),
                    reraise=True,
                ):
                    with attempt:
                        response = await client.get(self.jwks_url)
                        response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Could not fetch signing keys from %s: %s", self.jwks_url, str(e))
            raise IdentityVerificationError(
                "Signing keys unavailable",
                context={"jwks_url": self.jwks_url, "error_type": type(e).__name__},
            )

        raw_keys = payload.get("keys", []) if isinstance(payload, dict) else []
        keys = {
            jwk["kid"]: jwk
            for jwk in raw_keys
            if isinstance(jwk, dict) and jwk.get("kid")
        }
        if not keys:
            raise IdentityVerificationError(
                "Signing key set is empty", context={"jwks_url": self.jwks_url}
            )

        logger.info(
            "Fetched %d signing keys in %.0fms",
            len(keys),
            (time.time() - start_time) * 1000,
        )
        return keys

    # ── Health ────────────────────────────────────────────────────────────

    async def health_check(self) -> bool:
        if not self.is_configured:
            return False
        if not self.jwks_url:
            return True
        try:
            await self._get_signing_keys()
            return True
        except IdentityVerificationError as e:
            logger.warning("Identity provider health check failed: %s", e.message)
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
# Shared so the signing key cache survives across requests.
identity_verifier = JWTIdentityVerifier.from_settings(settings)
