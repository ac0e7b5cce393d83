from __future__ import annotations

import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from ..config import settings

# ---------------------------------------------------------------------------
# Session tokens (JWT)
# ---------------------------------------------------------------------------

ALGORITHM = "HS256"


def create_access_token(
    subject: str,
    email: str,
    name: Optional[str] = None,
    expires_minutes: int | None = None,
) -> str:
    minutes = expires_minutes or settings.jwt_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {
        "sub": subject,          # profile id
        "email": email,
        "name": name or "",
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate JWT. Raises JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])


# ---------------------------------------------------------------------------
# PKCE
# ---------------------------------------------------------------------------

def generate_code_verifier() -> str:
    return secrets.token_urlsafe(48)


def code_challenge(verifier: str) -> str:
    """S256 challenge for a PKCE verifier (RFC 7636)."""
    digest = hashlib.sha256(verifier.encode()).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()


# ---------------------------------------------------------------------------
# Email domain allow-list
# ---------------------------------------------------------------------------

def email_domain(email: Optional[str]) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def is_allowed_email(email: Optional[str], allowed_domains: list[str] | None = None) -> bool:
    allowed = allowed_domains if allowed_domains is not None else settings.allowed_email_domains
    domain = email_domain(email)
    return bool(domain) and domain in {d.lower() for d in allowed}


def display_initials(name: str) -> str:
    """Up to two initials from a display name ("Ada Lovelace" -> "AL")."""
    return "".join(word[0] for word in name.split() if word).upper()[:2]
