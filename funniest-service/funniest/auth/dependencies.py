from __future__ import annotations

from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from .core import decode_token
from ..config import settings
from ..database import db_session
from ..models import Profile

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------------
# Resolve current profile from JWT (header or session cookie)
# ---------------------------------------------------------------------------

def get_current_profile(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Profile:
    """
    Accepts either:
      - Authorization: Bearer <jwt>
      - the session cookie set by /auth/callback
    Returns the matching Profile or raises 401 with no further detail.
    """
    token = (bearer.credentials if bearer and bearer.credentials else None) or \
        request.cookies.get(settings.session_cookie_name)
    if not token:
        raise _unauthorized()

    try:
        payload = decode_token(token)
    except JWTError:
        raise _unauthorized()

    profile_id = payload.get("sub") or ""
    with db_session() as session:
        profile = session.get(Profile, profile_id)
    if profile is None:
        raise _unauthorized()
    return profile


def get_optional_profile(request: Request) -> Profile | None:
    """Like get_current_profile, but returns None for anonymous visitors."""
    auth = request.headers.get("authorization", "")
    bearer = None
    if auth.lower().startswith("bearer "):
        bearer = HTTPAuthorizationCredentials(scheme="Bearer", credentials=auth[7:].strip())
    try:
        return get_current_profile(request, bearer)
    except HTTPException:
        return None
