"""Identity provider: resolves a bearer token to the user it was issued for."""
from dataclasses import dataclass
from typing import Protocol

from cardforge.core.config import Settings
from cardforge.core.errors import Unauthenticated
from cardforge.core.security import decode_access_token


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None


class IdentityProvider(Protocol):
    async def get_user(self, token: str) -> AuthenticatedUser:
        ...


class JWTIdentityProvider:
    """Verifies provider-signed JWTs (signature, expiry, issuer, audience)."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def get_user(self, token: str) -> AuthenticatedUser:
        claims = decode_access_token(token, self.settings)
        if not claims or not claims.get("sub"):
            raise Unauthenticated("Invalid authorization token")
        return AuthenticatedUser(id=str(claims["sub"]), email=claims.get("email"))


def bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
