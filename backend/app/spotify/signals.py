from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

import httpx

from ..core.config import FREQUENT, RECENT, SIGNAL_CATEGORIES
from ..services.errors import AuthError, TransientError
from .client import SpotifyAuthError, SpotifyClient, SpotifyClientError

logger = logging.getLogger("spotify.signals")


@dataclass(frozen=True, slots=True)
class UserCredential:
    user_id: str
    access_token: str
    display_name: str = ""


class SignalFetcher(Protocol):
    async def fetch(self, credential: UserCredential, category: str, limit: int) -> List[Dict[str, Any]]:
        ...


@dataclass(slots=True)
class SpotifySignalFetcher:
    """Fetches raw listening signals for one user from the Spotify Web API.

    ``frequent`` maps to the user's top tracks and ``recent`` to the recently
    played history. Client failures are translated into :class:`AuthError` or
    :class:`TransientError` so callers never see transport details.
    """

    timeout: float = 15.0
    retries: int = 3
    time_range: str = "medium_term"
    transport: httpx.AsyncBaseTransport | None = None

    async def fetch(self, credential: UserCredential, category: str, limit: int) -> List[Dict[str, Any]]:
        if category not in SIGNAL_CATEGORIES:
            raise ValueError(f"unsupported signal category {category!r}")
        logger.debug("Fetching %s signal for %s (limit=%s)", category, credential.user_id, limit)
        async with SpotifyClient(
            access_token=credential.access_token,
            timeout=self.timeout,
            retries=self.retries,
            transport=self.transport,
        ) as client:
            try:
                if category == FREQUENT:
                    return await client.get_top_tracks(limit=limit, time_range=self.time_range)
                return await client.get_recently_played(limit=limit)
            except SpotifyAuthError as exc:
                raise AuthError(f"credential rejected for {credential.user_id}: {exc}") from exc
            except SpotifyClientError as exc:
                raise TransientError(f"{category} fetch failed for {credential.user_id}: {exc}") from exc
