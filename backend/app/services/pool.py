from __future__ import annotations

import asyncio
import logging
import random
from typing import List, Literal, Optional, Protocol, Sequence

from ..core.config import Settings
from ..spotify.signals import SignalFetcher, UserCredential
from .aggregator import aggregate
from .collector import collect
from .errors import NoMatchingUsers, NoUsableContributions, NoUsersRequested
from .sequencer import round_robin, sequence, shuffled
from .tracks import Track, UserContribution

PoolMode = Literal["weighted", "round-robin"]
POOL_MODES = ("weighted", "round-robin")

logger = logging.getLogger("pool")


class UserStore(Protocol):
    async def resolve(self, user_ids: Sequence[str]) -> List[UserCredential]:
        ...


def _unique_ids(user_ids: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(uid for uid in user_ids if uid))


async def build_pool(
    user_ids: Sequence[str],
    mode: PoolMode = "weighted",
    *,
    user_store: UserStore,
    fetcher: SignalFetcher,
    settings: Settings,
    rng: Optional[random.Random] = None,
) -> List[Track]:
    """Build a fresh track pool for a game session from several users' history.

    ``weighted`` aggregates contributions, suppresses tracks shared across
    users and expands the rest proportionally to weight before shuffling. A
    request where only one user contributed tracks skips weighting and returns
    that user's tracks shuffled. ``round-robin`` alternates between users in
    request order without cross-user dedup.

    Raises ``NoUsersRequested`` for empty input, ``NoMatchingUsers`` when no id
    resolves, and ``NoUsableContributions`` when nobody contributed a track or
    weighting left no track with a slot.
    """
    if mode not in POOL_MODES:
        raise ValueError(f"unsupported pool mode {mode!r}")

    ids = _unique_ids(user_ids)
    if not ids:
        raise NoUsersRequested("no user ids were requested")

    users = await user_store.resolve(ids)
    if not users:
        logger.warning("None of the requested users are registered: %s", ids)
        raise NoMatchingUsers("none of the requested users are registered")

    contributions: List[UserContribution] = list(
        await asyncio.gather(
            *(
                collect(
                    user,
                    fetcher,
                    limits=settings.signal_limits,
                    weights=settings.signal_weights,
                    cap=settings.max_tracks_per_user,
                    timeout=settings.signal_fetch_timeout_seconds,
                    placeholder_art_url=settings.placeholder_art_url,
                )
                for user in users
            )
        )
    )

    contributing = [c for c in contributions if c.tracks]
    if not contributing:
        raise NoUsableContributions("could not build pool: no tracks were available for the requested users")

    if mode == "round-robin":
        pool = round_robin(contributing)
    elif len(contributing) == 1:
        pool = shuffled(contributing[0].tracks, rng)
    else:
        weighted = aggregate(contributing)
        pool = sequence(weighted, expansion_factor=settings.expansion_factor, rng=rng)
        logger.info(
            "Weighted %s distinct tracks, %s shared by more than one user",
            len(weighted),
            sum(1 for w in weighted if w.popularity_count > 1),
        )
        if not pool:
            raise NoUsableContributions(
                f"could not build pool: all {len(weighted)} tracks were diluted below one slot "
                f"at expansion factor {settings.expansion_factor}"
            )

    logger.info(
        "Built %s pool with %s slots from %s of %s users",
        mode,
        len(pool),
        len(contributing),
        len(users),
    )
    return pool
