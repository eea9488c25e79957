"""
ThoughtJar Backend — Abstract Identity Verifier Interface
===========================================================

What:  Abstract base class for turning a bearer token into a verified identity.
Why:   The identity provider is an external collaborator. Routes and the auth
       gate depend on this one capability, not on a particular provider, so
       Firebase, Supabase, or a test double can stand behind it.
How:   Concrete implementations inherit from IdentityVerifier and implement
       verify() and health_check().
Who:   Called by the auth gate (middleware/auth.py) once per request.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VerifiedIdentity:
    """
    The caller, as vouched for by the identity provider.

    subject_id is the provider's stable user id and becomes the owner id of
    everything the caller creates. email is optional (anonymous sign-ins
    and some providers omit it).
    """

    subject_id: str
    email: Optional[str] = None


class IdentityVerifier(ABC):
    """
    Contract:
        - verify() returns a VerifiedIdentity or raises IdentityVerificationError
        - verify() never raises anything else for a bad token; provider
          outages while fetching keys also surface as IdentityVerificationError
        - implementations hold no per-request state
    """

    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        """
        Verify a raw bearer token (without the "Bearer " prefix).

        Raises:
            IdentityVerificationError: expired, malformed, wrongly signed,
                wrong audience/issuer, missing subject, or no key available.
        """
        ...

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the verifier has a key source to check signatures against."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if tokens can currently be verified.

        Who:     Called by the health check endpoint.
        Returns: True if verification keys are available, False otherwise.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the verifier (application shutdown)."""
        return None
