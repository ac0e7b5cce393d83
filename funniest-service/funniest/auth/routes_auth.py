from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse

from .core import (
    code_challenge,
    create_access_token,
    display_initials,
    generate_code_verifier,
    is_allowed_email,
)
from .dependencies import get_current_profile
from .provider import IdentityProvider, IdentityProviderError, ProviderUser, get_identity_provider
from ..config import settings
from ..database import db_session
from ..models import Profile
from ..rate_limit import limiter
from ..schemas import MeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

PKCE_COOKIE = "funniest_pkce_verifier"
# Provider access token, kept so sign-out can revoke the provider session too
PROVIDER_TOKEN_COOKIE = "funniest_provider_token"


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _upsert_profile(user: ProviderUser) -> Profile:
    """Create or refresh the local profile row and count the login."""
    now = datetime.now(timezone.utc)
    with db_session() as session:
        profile = session.get(Profile, user.id)
        if profile is None:
            profile = Profile(id=user.id, email=user.email, full_name=user.full_name, login_count=0)
            session.add(profile)
        else:
            profile.email = user.email
            if user.full_name:
                profile.full_name = user.full_name
        profile.last_login_at = now
        profile.login_count = (profile.login_count or 0) + 1
    return profile


# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------

@router.get("/login")
def start_login(
    request: Request,
    provider_name: str = Query("google", alias="provider"),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> RedirectResponse:
    """Send the browser to the provider's OAuth page with a fresh PKCE challenge."""
    verifier = generate_code_verifier()
    url = provider.authorize_url(
        provider_name,
        redirect_to=f"{_origin(request)}/auth/callback",
        challenge=code_challenge(verifier),
    )
    response = _redirect(url)
    response.set_cookie(PKCE_COOKIE, verifier, max_age=600, httponly=True, samesite="lax")
    return response


@router.get("/callback")
@limiter.limit(settings.callback_rate_limit)
def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> RedirectResponse:
    """
    Exchange the authorization code for a session.

    Only accounts from the allowed email domains get a session; anyone
    else is signed out at the provider and sent back to the login page
    with ``error=unauthorized_domain``. A missing or rejected code ends
    at ``error=auth_failed``.
    """
    origin = _origin(request)
    if not code:
        return _redirect(f"{origin}/login?error=auth_failed")

    try:
        auth = provider.exchange_code(code, request.cookies.get(PKCE_COOKIE))
    except IdentityProviderError as exc:
        logger.warning("Code exchange failed: %s", exc)
        return _redirect(f"{origin}/login?error=auth_failed")

    if not is_allowed_email(auth.user.email):
        logger.info("Rejected sign-in from disallowed domain: %s", auth.user.email)
        try:
            provider.sign_out(auth.access_token)
        except IdentityProviderError as exc:
            logger.warning("Provider sign-out failed: %s", exc)
        response = _redirect(f"{origin}/login?error=unauthorized_domain")
        response.delete_cookie(settings.session_cookie_name)
        response.delete_cookie(PKCE_COOKIE)
        return response

    profile = _upsert_profile(auth.user)
    token = create_access_token(profile.id, profile.email, profile.full_name)

    response = _redirect(origin + "/")
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment != "development",
    )
    response.set_cookie(
        PROVIDER_TOKEN_COOKIE,
        auth.access_token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment != "development",
    )
    response.delete_cookie(PKCE_COOKIE)
    return response


# ---------------------------------------------------------------------------
# Sign-out / profile
# ---------------------------------------------------------------------------

@router.post("/logout")
def logout(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> RedirectResponse:
    """End the local session and revoke the provider session when we hold its token."""
    provider_token = request.cookies.get(PROVIDER_TOKEN_COOKIE)
    if provider_token:
        try:
            provider.sign_out(provider_token)
        except IdentityProviderError as exc:
            logger.warning("Provider sign-out failed: %s", exc)
    response = _redirect(f"{_origin(request)}/login")
    response.delete_cookie(settings.session_cookie_name)
    response.delete_cookie(PROVIDER_TOKEN_COOKIE)
    return response


@router.get("/me", response_model=MeResponse)
def me(profile: Profile = Depends(get_current_profile)) -> MeResponse:
    name = profile.full_name or profile.email or "User"
    return MeResponse(
        id=profile.id,
        email=profile.email,
        name=name,
        initials=display_initials(name),
    )
