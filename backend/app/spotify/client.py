from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import httpx

API_BASE = "https://api.spotify.com/v1"
MAX_PAGE_LIMIT = 50

logger = logging.getLogger("spotify.client")


class SpotifyClientError(Exception):
    pass


class SpotifyAuthError(SpotifyClientError):
    pass


class SpotifyRateLimitError(SpotifyClientError):
    pass


@dataclass(slots=True)
class SpotifyClient:
    access_token: str
    timeout: float = 15.0
    retries: int = 3
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient | None = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=API_BASE,
            headers={"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def __aenter__(self) -> "SpotifyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        client = self._client
        if client is None:
            raise SpotifyClientError("spotify client not initialized")

        # Strip leading slash to avoid double slashes with base_url
        clean_url = url.lstrip("/")
        rate_limited = False

        for attempt in range(1, self.retries + 1):
            try:
                response = await client.request(method, clean_url, params=params)
            except httpx.RequestError as exc:  # network issue
                if attempt == self.retries:
                    raise SpotifyClientError(f"network error: {exc}") from exc
                await asyncio.sleep(2 ** attempt)
                continue

            if response.status_code == 401:
                raise SpotifyAuthError("spotify token unauthorized")

            if response.status_code == 429:
                rate_limited = True
                retry_after = float(response.headers.get("Retry-After", "1"))
                logger.info("Rate limited on %s %s, retrying in %ss", method, url, retry_after)
                await asyncio.sleep(retry_after)
                continue

            if response.status_code >= 400:
                detail = response.text
                logger.error("Spotify API %s %s -> %s %s", method, url, response.status_code, detail)
                raise SpotifyClientError(f"spotify api error {response.status_code}: {detail}")

            if response.content:
                return response.json()
            return {}

        if rate_limited:
            raise SpotifyRateLimitError(f"rate limited after {self.retries} attempts")
        raise SpotifyClientError("max retries exceeded for spotify request")

    async def get_top_tracks(self, *, limit: int = 50, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        params = {"limit": max(1, min(limit, MAX_PAGE_LIMIT)), "time_range": time_range}
        payload = await self._request("GET", "/me/top/tracks", params=params)
        return list(payload.get("items") or [])

    async def get_recently_played(self, *, limit: int = 50) -> List[Dict[str, Any]]:
        params = {"limit": max(1, min(limit, MAX_PAGE_LIMIT))}
        payload = await self._request("GET", "/me/player/recently-played", params=params)
        return list(payload.get("items") or [])
