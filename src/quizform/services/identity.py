"""Identity provider adapter verifying bearer tokens with the auth service.

The auth service is Supabase-compatible: ``GET {auth_url}/auth/v1/user``
with the caller's bearer token returns the verified user record.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from quizform.config import settings
from quizform.exceptions import ExternalServiceError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A verified caller; ``subject_id`` is the respondent identity."""

    subject_id: str
    email: str | None = None


class IdentityProvider(Protocol):
    """Anything that can turn a bearer token into a verified identity."""

    async def verify(self, token: str) -> Identity:
        """Return the identity behind ``token`` or raise UnauthorizedError."""
        ...


class SupabaseIdentityProvider:
    """Verify tokens against a Supabase-compatible auth endpoint."""

    def __init__(
        self,
        auth_url: str = settings.auth_url,
        api_key: str = settings.auth_api_key,
        timeout: float = settings.auth_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def verify(self, token: str) -> Identity:
        """Look the token up with the auth service.

        Raises:
            UnauthorizedError: If the token is rejected or has no subject
            ExternalServiceError: If the auth service cannot be reached
        """
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(f"{self.auth_url}/auth/v1/user", headers=headers)
        except httpx.RequestError as exc:
            logger.error("Auth service unreachable: %s", exc)
            raise ExternalServiceError("AuthProvider", str(exc)) from exc

        if response.status_code in (401, 403):
            raise UnauthorizedError("Invalid or expired token")
        if response.status_code >= 400:
            logger.error("Auth service returned status %s", response.status_code)
            raise ExternalServiceError(
                "AuthProvider",
                f"unexpected status {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceError("AuthProvider", "invalid JSON body") from exc

        subject_id = payload.get("id") if isinstance(payload, dict) else None
        if not subject_id:
            raise UnauthorizedError("Token has no subject")

        return Identity(subject_id=str(subject_id), email=payload.get("email"))
