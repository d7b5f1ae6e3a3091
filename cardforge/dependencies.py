"""FastAPI dependencies: the auth gate and the per-request collaborators.

Collaborators live on `app.state` (built in `create_app`), so tests swap them
by passing their own or through `app.dependency_overrides`.
"""
import logging
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cardforge.core.errors import Unauthenticated
from cardforge.db.session import get_db
from cardforge.services.generator import ContentGenerator
from cardforge.services.identity import AuthenticatedUser, IdentityProvider, bearer_token
from cardforge.services.store import Store

logger = logging.getLogger(__name__)


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_generator(request: Request) -> ContentGenerator:
    return request.app.state.generator


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> Store:
    return Store(db)


async def require_user(
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """Resolve `Authorization: Bearer <token>` or fail with 401."""
    token = bearer_token(authorization)
    if not token:
        raise Unauthenticated("Missing authorization token")
    try:
        return await identity.get_user(token)
    except Unauthenticated:
        logger.info("Rejected bearer token")
        raise


async def get_current_user_optional(
    request: Request,
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> AuthenticatedUser | None:
    """Browser pages: user from the auth cookie, or None."""
    token = request.cookies.get(request.app.state.settings.auth_cookie_name)
    if not token:
        return None
    try:
        return await identity.get_user(token)
    except Unauthenticated:
        return None
