from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Set

from ..core.config import PLACEHOLDER_ART_URL
from ..spotify.signals import SignalFetcher, UserCredential
from .errors import MalformedRecordError, SignalFetchError
from .tracks import DEFAULT_SIGNAL_WEIGHTS, Track, UserContribution, normalize

DEFAULT_SIGNAL_LIMITS: Dict[str, int] = {"frequent": 50, "recent": 30}

logger = logging.getLogger("pool.collector")


async def _fetch_category(
    fetcher: SignalFetcher,
    user: UserCredential,
    category: str,
    limit: int,
    timeout: float,
) -> List[Dict[str, Any]]:
    try:
        return await asyncio.wait_for(fetcher.fetch(user, category, limit), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Fetching %s tracks for %s timed out after %ss", category, user.user_id, timeout)
    except SignalFetchError as exc:
        logger.warning("Fetching %s tracks for %s failed: %s", category, user.user_id, exc)
    return []


async def collect(
    user: UserCredential,
    fetcher: SignalFetcher,
    *,
    limits: Mapping[str, int] | None = None,
    weights: Mapping[str, float] | None = None,
    cap: int = 80,
    timeout: float = 10.0,
    placeholder_art_url: str = PLACEHOLDER_ART_URL,
) -> UserContribution:
    """Gather one user's deduplicated candidate tracks across signal categories.

    Categories are fetched concurrently and merged in ``limits`` order, so with
    the default configuration a track both frequently and recently played keeps
    the heavier "frequent" weight. A failing category yields nothing; the user
    is never dropped because of it.
    """
    limits = DEFAULT_SIGNAL_LIMITS if limits is None else limits
    weights = DEFAULT_SIGNAL_WEIGHTS if weights is None else weights
    categories = list(limits)

    results = await asyncio.gather(
        *(_fetch_category(fetcher, user, category, limits[category], timeout) for category in categories)
    )

    seen: Set[str] = set()
    tracks: List[Track] = []
    skipped = 0
    for category, items in zip(categories, results):
        for item in items:
            try:
                track = normalize(item, category, weights=weights, placeholder_art_url=placeholder_art_url)
            except MalformedRecordError as exc:
                skipped += 1
                logger.debug("Skipping %s record for %s: %s", category, user.user_id, exc)
                continue
            if track.id in seen:
                continue
            seen.add(track.id)
            tracks.append(track)

    if len(tracks) > cap:
        tracks = tracks[:cap]

    logger.info(
        "Collected %s tracks for %s (%s)",
        len(tracks),
        user.display_name or user.user_id,
        ", ".join(f"{category}={len(items)}" for category, items in zip(categories, results)),
    )
    if skipped:
        logger.info("Skipped %s malformed records for %s", skipped, user.user_id)
    return UserContribution(user_id=user.user_id, tracks=tracks)
