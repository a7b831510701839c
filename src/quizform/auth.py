"""FastAPI dependencies resolving the caller's identity."""

from functools import lru_cache

from fastapi import Depends, Header

from quizform.exceptions import UnauthorizedError
from quizform.services.identity import Identity, IdentityProvider, SupabaseIdentityProvider

BEARER_PREFIX = "Bearer "


@lru_cache
def get_identity_provider() -> IdentityProvider:
    """Get the cached identity provider."""
    return SupabaseIdentityProvider()


def _extract_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


async def get_current_identity(
    authorization: str | None = Header(None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    """Require a verified caller."""
    token = _extract_token(authorization)
    if token is None:
        raise UnauthorizedError("No authorization token provided")
    return await provider.verify(token)
