"""
provider.py — Hosted identity provider (GoTrue-compatible REST API)
===================================================================
The service never sees passwords. Sign-in happens at the provider's
OAuth page; the provider redirects back to /auth/callback with a PKCE
authorization code, which is exchanged here for the provider's session
and user record.

Endpoints used:
  GET  {base}/auth/v1/authorize   (browser redirect, built by authorize_url)
  POST {base}/auth/v1/token?grant_type=pkce
  POST {base}/auth/v1/logout
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class IdentityProviderError(RuntimeError):
    """Raised when the identity provider rejects a request or is unreachable."""


@dataclass
class ProviderUser:
    id: str
    email: str
    full_name: Optional[str] = None


@dataclass
class ProviderSession:
    access_token: str
    user: ProviderUser


def _user_from_payload(payload: Dict[str, Any]) -> ProviderUser:
    meta = payload.get("user_metadata") or {}
    return ProviderUser(
        id=str(payload.get("id", "")),
        email=payload.get("email") or "",
        full_name=meta.get("full_name") or meta.get("name"),
    )


class IdentityProvider:
    """Thin synchronous client for the hosted auth service."""

    def __init__(
        self,
        base_url: str,
        anon_key: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def _headers(self, access_token: str | None = None) -> Dict[str, str]:
        h: Dict[str, str] = {"Content-Type": "application/json"}
        if self.anon_key:
            h["apikey"] = self.anon_key
        if access_token:
            h["Authorization"] = f"Bearer {access_token}"
        return h

    def authorize_url(self, provider: str, redirect_to: str, challenge: str) -> str:
        query = urlencode({
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": challenge,
            "code_challenge_method": "s256",
        })
        return f"{self.base_url}/auth/v1/authorize?{query}"

    def exchange_code(self, code: str, code_verifier: str | None = None) -> ProviderSession:
        """Trade an authorization code for a session. Raises IdentityProviderError."""
        try:
            resp = self._client.post(
                "/auth/v1/token",
                params={"grant_type": "pkce"},
                json={"auth_code": code, "code_verifier": code_verifier or ""},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc

        if resp.status_code != 200:
            raise IdentityProviderError(
                f"Code exchange rejected ({resp.status_code}): {resp.text[:200]}"
            )
        data = resp.json()
        token = data.get("access_token")
        user = data.get("user")
        if not token or not user:
            raise IdentityProviderError("Code exchange returned no session.")
        return ProviderSession(access_token=token, user=_user_from_payload(user))

    def sign_out(self, access_token: str) -> None:
        """Revoke the provider session. Raises IdentityProviderError."""
        try:
            resp = self._client.post("/auth/v1/logout", headers=self._headers(access_token))
        except httpx.HTTPError as exc:
            raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc
        if resp.status_code >= 400:
            raise IdentityProviderError(f"Sign-out rejected ({resp.status_code})")


_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency returning the process-wide provider client."""
    global _provider
    if _provider is None:
        _provider = IdentityProvider(
            settings.auth_provider_url,
            anon_key=settings.auth_provider_anon_key,
            timeout=settings.auth_provider_timeout_seconds,
        )
    return _provider
