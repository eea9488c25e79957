"""
ThoughtJar Backend — JWT Identity Verifier Tests
==================================================

What:  JWTIdentityVerifier with real tokens signed by python-jose.
How:   Shared-secret cases use HS256 directly. Key-set cases serve a JWKS
       document through httpx.MockTransport, so no network is touched.

What we test:
    ✅ Valid HS256 token → subject and email
    ✅ Wrong secret, expired, missing sub, wrong audience/issuer → rejected
    ✅ JWKS keys fetched once and cached
    ✅ Unknown kid → one forced refresh attempt, then rejected
    ✅ Transient JWKS failures retried; persistent failure → rejected
"""

import base64
import time
import warnings

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from thoughtjar.config import Settings
from thoughtjar.exceptions import IdentityVerificationError
from thoughtjar.services.identity_service import JWTIdentityVerifier

SECRET = "unit-test-secret"
JWKS_URL = "https://keys.example.test/jwks.json"


def _claims(**overrides):
    now = int(time.time())
    claims = {"sub": "user-123", "email": "ada@example.com", "iat": now, "exp": now + 300}
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture(scope="module")
def rsa_keypair():
    """(private PEM, public JWK with kid "k1")"""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    numbers = private_key.public_key().public_numbers()
    public_jwk = {
        "kty": "RSA",
        "kid": "k1",
        "alg": "RS256",
        "use": "sig",
        "n": _b64url_uint(numbers.n),
        "e": _b64url_uint(numbers.e),
    }
    return private_pem, public_jwk


class _JWKSServer:
    """httpx handler serving a fixed key set; optionally failing first."""

    def __init__(self, keys, failures: int = 0, status: int = 503):
        self.keys = keys
        self.failures = failures
        self.status = status
        self.requests = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        if self.requests <= self.failures:
            return httpx.Response(self.status, json={"error": "unavailable"})
        return httpx.Response(200, json={"keys": self.keys})


def _jwks_verifier(server, **kwargs):
    return JWTIdentityVerifier(
        jwks_url=JWKS_URL,
        transport=httpx.MockTransport(server),
        retry_attempts=3,
        retry_min_wait=0,
        retry_max_wait=0,
        **kwargs,
    )


class TestSharedSecret:

    def setup_method(self):
        self.verifier = JWTIdentityVerifier(jwt_secret=SECRET)

    @pytest.mark.asyncio
    async def test_valid_token(self):
        token = jwt.encode(_claims(), SECRET, algorithm="HS256")

        identity = await self.verifier.verify(token)

        assert identity.subject_id == "user-123"
        assert identity.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_token_without_email(self):
        token = jwt.encode(_claims(email=None), SECRET, algorithm="HS256")

        identity = await self.verifier.verify(token)

        assert identity.email is None

    @pytest.mark.asyncio
    async def test_wrong_secret(self):
        token = jwt.encode(_claims(), "someone-else", algorithm="HS256")

        with pytest.raises(IdentityVerificationError) as exc_info:
            await self.verifier.verify(token)
        assert exc_info.value.message == "Invalid token"

    @pytest.mark.asyncio
    async def test_expired(self):
        past = int(time.time()) - 3600
        token = jwt.encode(_claims(iat=past - 60, exp=past), SECRET, algorithm="HS256")

        with pytest.raises(IdentityVerificationError) as exc_info:
            await self.verifier.verify(token)
        assert exc_info.value.message == "Token expired"

    @pytest.mark.asyncio
    async def test_missing_subject(self):
        token = jwt.encode(_claims(sub=None), SECRET, algorithm="HS256")

        with pytest.raises(IdentityVerificationError) as exc_info:
            await self.verifier.verify(token)
        assert exc_info.value.message == "Token has no subject"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "not.a.jwt", "garbage"])
    async def test_malformed(self, token):
        with pytest.raises(IdentityVerificationError):
            await self.verifier.verify(token)

    @pytest.mark.asyncio
    async def test_algorithm_not_accepted(self):
        token = jwt.encode(_claims(), SECRET, algorithm="HS512")

        with pytest.raises(IdentityVerificationError) as exc_info:
            await self.verifier.verify(token)
        assert exc_info.value.message == "Token algorithm not accepted"


class TestAudienceAndIssuer:

    def setup_method(self):
        self.verifier = JWTIdentityVerifier(
            jwt_secret=SECRET,
            audience="thoughtjar-app",
            issuer="https://issuer.example.test",
        )

    @pytest.mark.asyncio
    async def test_matching_claims(self):
        token = jwt.encode(
            _claims(aud="thoughtjar-app", iss="https://issuer.example.test"), SECRET, algorithm="HS256"
        )

        identity = await self.verifier.verify(token)
        assert identity.subject_id == "user-123"

    @pytest.mark.asyncio
    async def test_wrong_audience(self):
        token = jwt.encode(
            _claims(aud="other-app", iss="https://issuer.example.test"), SECRET, algorithm="HS256"
        )

        with pytest.raises(IdentityVerificationError):
            await self.verifier.verify(token)

    @pytest.mark.asyncio
    async def test_wrong_issuer(self):
        token = jwt.encode(
            _claims(aud="thoughtjar-app", iss="https://evil.example.test"), SECRET, algorithm="HS256"
        )

        with pytest.raises(IdentityVerificationError):
            await self.verifier.verify(token)


class TestKeySet:

    @pytest.mark.asyncio
    async def test_valid_rs256_token_and_cached_keys(self, rsa_keypair):
        private_pem, public_jwk = rsa_keypair
        server = _JWKSServer([public_jwk])
        verifier = _jwks_verifier(server)
        token = jwt.encode(_claims(), private_pem, algorithm="RS256", headers={"kid": "k1"})

        first = await verifier.verify(token)
        second = await verifier.verify(token)

        assert first.subject_id == second.subject_id == "user-123"
        assert server.requests == 1

    @pytest.mark.asyncio
    async def test_unknown_kid_is_rejected(self, rsa_keypair):
        private_pem, public_jwk = rsa_keypair
        server = _JWKSServer([public_jwk])
        verifier = _jwks_verifier(server)
        token = jwt.encode(_claims(), private_pem, algorithm="RS256", headers={"kid": "rotated"})

        with pytest.raises(IdentityVerificationError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.message == "Unknown signing key"
        # The forced refresh is rate limited right after the initial fetch
        assert server.requests == 1

    @pytest.mark.asyncio
    async def test_hs256_token_rejected_by_key_set_verifier(self, rsa_keypair):
        _, public_jwk = rsa_keypair
        verifier = _jwks_verifier(_JWKSServer([public_jwk]))
        token = jwt.encode(_claims(), SECRET, algorithm="HS256", headers={"kid": "k1"})

        with pytest.raises(IdentityVerificationError):
            await verifier.verify(token)

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, rsa_keypair):
        private_pem, public_jwk = rsa_keypair
        server = _JWKSServer([public_jwk], failures=2)
        verifier = _jwks_verifier(server)
        token = jwt.encode(_claims(), private_pem, algorithm="RS256", headers={"kid": "k1"})

        identity = await verifier.verify(token)

        assert identity.subject_id == "user-123"
        assert server.requests == 3

    @pytest.mark.asyncio
    async def test_retry_policy_uses_current_tenacity_arguments(self, rsa_keypair):
        """Fetching with retries emits no tenacity deprecation warnings."""
        _, public_jwk = rsa_keypair
        server = _JWKSServer([public_jwk], failures=1)
        verifier = _jwks_verifier(server)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            keys = await verifier._fetch_jwks()

        assert list(keys) == ["k1"]
        assert server.requests == 2
        assert [w for w in caught if issubclass(w.category, DeprecationWarning)] == []

    @pytest.mark.asyncio
    async def test_persistent_failure_is_rejected(self, rsa_keypair):
        private_pem, public_jwk = rsa_keypair
        server = _JWKSServer([public_jwk], failures=10)
        verifier = _jwks_verifier(server)
        token = jwt.encode(_claims(), private_pem, algorithm="RS256", headers={"kid": "k1"})

        with pytest.raises(IdentityVerificationError) as exc_info:
            await verifier.verify(token)

        assert exc_info.value.message == "Signing keys unavailable"
        assert server.requests == 3

    @pytest.mark.asyncio
    async def test_empty_key_set_is_rejected(self):
        verifier = _jwks_verifier(_JWKSServer([]))

        assert await verifier.health_check() is False


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_unconfigured_verifier_rejects_everything(self):
        verifier = JWTIdentityVerifier()
        token = jwt.encode(_claims(), SECRET, algorithm="HS256")

        assert verifier.is_configured is False
        assert await verifier.health_check() is False
        with pytest.raises(IdentityVerificationError) as exc_info:
            await verifier.verify(token)
        assert exc_info.value.message == "No token verification key configured"

    @pytest.mark.asyncio
    async def test_secret_only_verifier_is_healthy(self):
        assert await JWTIdentityVerifier(jwt_secret=SECRET).health_check() is True

    def test_firebase_project_derives_key_source(self):
        config = Settings(
            firebase_project_id="my-project",
            auth_jwt_secret=None,
            auth_jwks_url=None,
            _env_file=None,
        )

        verifier = JWTIdentityVerifier.from_settings(config)

        assert "securetoken" in verifier.jwks_url
        assert verifier.issuer == "https://securetoken.google.com/my-project"
        assert verifier.audience == "my-project"
        assert verifier.algorithms == ["RS256"]
