from __future__ import annotations

import math
import random
from collections import deque
from typing import Deque, Iterable, List, MutableSequence, Optional, Sequence, Set, TypeVar

from .tracks import Track, UserContribution, WeightedTrack

DEFAULT_EXPANSION_FACTOR = 10

# absorbs float error so 0.7 / 2 * 10 rounds up to 4 like 3.5 does
_ROUNDING_EPSILON = 1e-9

T = TypeVar("T")


def fisher_yates(items: MutableSequence[T], rng: Optional[random.Random] = None) -> MutableSequence[T]:
    """Shuffle ``items`` in place with the Fisher-Yates algorithm.

    Randomness comes from ``rng``; without one a fresh ``random.Random`` seeded
    from OS entropy is used. Uniform over permutations, not cryptographically
    secure.
    """
    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def replica_count(final_weight: float, expansion_factor: int = DEFAULT_EXPANSION_FACTOR) -> int:
    """Half-up rounding of ``final_weight * expansion_factor``."""
    return int(math.floor(final_weight * expansion_factor + 0.5 + _ROUNDING_EPSILON))


def expand(weighted_tracks: Iterable[WeightedTrack], expansion_factor: int = DEFAULT_EXPANSION_FACTOR) -> List[Track]:
    # a weight rounding to zero replicas drops the track; intended lossy step
    working: List[Track] = []
    for weighted in weighted_tracks:
        working.extend([weighted.track] * replica_count(weighted.final_weight, expansion_factor))
    return working


def sequence(
    weighted_tracks: Sequence[WeightedTrack],
    *,
    expansion_factor: int = DEFAULT_EXPANSION_FACTOR,
    rng: Optional[random.Random] = None,
) -> List[Track]:
    """Expand tracks proportionally to weight, then shuffle.

    The same track may occupy several slots; that biases selection in the game
    without guaranteeing a pick. Use :func:`distinct` when one slot per track is
    required.
    """
    working = expand(weighted_tracks, expansion_factor)
    fisher_yates(working, rng)
    return working


def shuffled(tracks: Iterable[Track], rng: Optional[random.Random] = None) -> List[Track]:
    working = list(tracks)
    fisher_yates(working, rng)
    return working


def round_robin(contributions: Sequence[UserContribution]) -> List[Track]:
    """Draw one track from each user in turn until every list is exhausted.

    No cross-user dedup: a track shared by two users is emitted twice.
    """
    queues: List[Deque[Track]] = [deque(c.tracks) for c in contributions if c.tracks]
    out: List[Track] = []
    while queues:
        for queue in queues:
            out.append(queue.popleft())
        queues = [queue for queue in queues if queue]
    return out


def distinct(tracks: Iterable[Track]) -> List[Track]:
    seen: Set[str] = set()
    out: List[Track] = []
    for track in tracks:
        if track.id in seen:
            continue
        seen.add(track.id)
        out.append(track)
    return out
