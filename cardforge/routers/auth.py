"""Auth routes: sign-up, sign-in, sign-out.

The app is its own identity provider: it issues JWT access tokens that the
auth gate verifies. API clients send them as `Authorization: Bearer`; browser
pages keep them in an httpOnly cookie. When an external provider is configured
(public key or a non-HS algorithm) local sign-up and sign-in answer 403.
"""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from cardforge.core.config import BASE_DIR, Settings
from cardforge.core.errors import AppError, Conflict, Forbidden, Unauthenticated
from cardforge.core.security import create_access_token, hash_password, verify_password
from cardforge.dependencies import get_current_user_optional, get_store
from cardforge.models.user import User
from cardforge.schemas.auth import CredentialsSchema, TokenOutSchema, UserOutSchema
from cardforge.services.identity import AuthenticatedUser
from cardforge.services.store import Store
from cardforge.services.validation import validate_credentials

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _redirect(url, **params) -> RedirectResponse:
    """303 redirect with query params."""
    return RedirectResponse(url.include_query_params(**params), status_code=303)


def _require_local_accounts(settings: Settings) -> None:
    if not settings.issues_local_tokens:
        raise Forbidden("Local accounts are disabled; sign in through the identity provider")


def _issue_token(user: User, settings: Settings) -> TokenOutSchema:
    token = create_access_token(user.id, extra={"email": user.email}, settings=settings)
    return TokenOutSchema(access_token=token, user=UserOutSchema.model_validate(user))


def _set_auth_cookie(response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.auth_cookie_max_age,
        httponly=True,
        samesite="lax",
        path="/",
    )


async def register_user(store: Store, email: str | None, password: str | None) -> User:
    email_norm, pwd = validate_credentials(email, password)
    if await store.get_user_by_email(email_norm):
        raise Conflict("An account with this email already exists")
    user = await store.create_user(email_norm, hash_password(pwd))
    logger.info("Registered user %s", user.id)
    return user


async def authenticate(store: Store, email: str | None, password: str | None) -> User:
    email_norm = (email or "").strip().lower()
    user = await store.get_user_by_email(email_norm)
    if not user or not verify_password(password or "", user.hashed_password):
        raise Unauthenticated("Invalid email or password")
    return user


# ---------- JSON ----------

@router.post("/api/auth/register", response_model=TokenOutSchema, tags=["auth"])
async def api_register(
    request: Request,
    body: CredentialsSchema,
    store: Annotated[Store, Depends(get_store)],
):
    _require_local_accounts(_settings(request))
    user = await register_user(store, body.email, body.password)
    return _issue_token(user, _settings(request))


@router.post("/api/auth/login", response_model=TokenOutSchema, tags=["auth"])
async def api_login(
    request: Request,
    body: CredentialsSchema,
    store: Annotated[Store, Depends(get_store)],
):
    _require_local_accounts(_settings(request))
    user = await authenticate(store, body.email, body.password)
    return _issue_token(user, _settings(request))


# ---------- browser forms ----------

@router.get("/login", response_class=HTMLResponse)
def login_get(
    request: Request,
    current_user: Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)],
    error: str | None = None,
):
    """Show login form."""
    return templates.TemplateResponse(
        request,
        "login.html",
        {"current_user": current_user, "error": error},
    )


@router.post("/login", response_class=RedirectResponse)
async def login_post(
    request: Request,
    store: Annotated[Store, Depends(get_store)],
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
):
    """Authenticate and set auth cookie; redirect to dashboard."""
    try:
        _require_local_accounts(_settings(request))
        user = await authenticate(store, email, password)
    except (Forbidden, Unauthenticated) as e:
        return _redirect(request.url_for("login_get"), error=e.message)

    settings = _settings(request)
    response = RedirectResponse(request.url_for("dashboard"), status_code=303)
    _set_auth_cookie(response, _issue_token(user, settings).access_token, settings)
    return response


@router.get("/register", response_class=HTMLResponse)
def register_get(
    request: Request,
    current_user: Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)],
    error: str | None = None,
):
    """Show sign-up form."""
    return templates.TemplateResponse(
        request,
        "register.html",
        {"current_user": current_user, "error": error},
    )


@router.post("/register", response_class=RedirectResponse)
async def register_post(
    request: Request,
    store: Annotated[Store, Depends(get_store)],
    email: Annotated[str, Form()],
    password: Annotated[str, Form()],
):
    """Create user, set auth cookie, go to the topic form."""
    try:
        _require_local_accounts(_settings(request))
        user = await register_user(store, email, password)
    except AppError as e:
        if e.status_code >= 500:
            raise
        return _redirect(request.url_for("register_get"), error=e.message)

    settings = _settings(request)
    response = RedirectResponse(request.url_for("home"), status_code=303)
    _set_auth_cookie(response, _issue_token(user, settings).access_token, settings)
    return response


@router.post("/logout", response_class=RedirectResponse)
def logout_post(request: Request):
    """Clear auth cookie and redirect to home."""
    response = RedirectResponse(request.url_for("home"), status_code=303)
    # path must match the one used in set_cookie()
    response.delete_cookie(_settings(request).auth_cookie_name, path="/")
    return response
