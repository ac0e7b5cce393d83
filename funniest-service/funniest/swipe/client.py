"""
client.py — Async HTTP client for the vote API
==============================================
Used by the swipe driver (and scripts) to talk to a running service:

  fetch_unvoted()              GET   /api/captions/unvoted
  create_vote(id, value)       POST  /api/vote
  update_vote(id, value)       PATCH /api/vote

Arguments are validated before any request goes out. Non-2xx responses
raise CaptionsAPIError carrying the status code and the server's detail.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .machine import Pair

_TIMEOUT = 10.0
VALID_VOTES = (1, -1)


class CaptionsAPIError(RuntimeError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, status_code: int, detail: Any = None) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


def validate_vote(caption_id: Optional[str], vote_value: Any) -> None:
    if not caption_id:
        raise ValueError("caption_id is required")
    if isinstance(vote_value, bool) or vote_value not in VALID_VOTES:
        raise ValueError("vote_value must be 1 or -1")


class CaptionsClient:
    """Thin wrapper over httpx.AsyncClient with the session token attached."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = _TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CaptionsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _check(resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail")
            except ValueError:
                detail = resp.text
            raise CaptionsAPIError(resp.status_code, detail)
        return resp.json()

    async def fetch_unvoted(self) -> List[Pair]:
        resp = await self._http.get("/api/captions/unvoted")
        return [Pair.from_payload(item) for item in self._check(resp)]

    async def create_vote(self, caption_id: str, vote_value: int) -> Dict[str, Any]:
        validate_vote(caption_id, vote_value)
        resp = await self._http.post(
            "/api/vote", json={"caption_id": caption_id, "vote_value": vote_value}
        )
        return self._check(resp)

    async def update_vote(self, caption_id: str, vote_value: int) -> Dict[str, Any]:
        validate_vote(caption_id, vote_value)
        resp = await self._http.patch(
            "/api/vote", json={"caption_id": caption_id, "vote_value": vote_value}
        )
        return self._check(resp)
