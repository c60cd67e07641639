from __future__ import annotations

from typing import Dict, List, Sequence, Set

from .tracks import Track, UserContribution, WeightedTrack


def popularity(contributions: Sequence[UserContribution]) -> Dict[str, int]:
    """Number of distinct users whose contribution contains each track id."""
    counts: Dict[str, int] = {}
    for contribution in contributions:
        ids: Set[str] = {track.id for track in contribution.tracks}
        for track_id in ids:
            counts[track_id] = counts.get(track_id, 0) + 1
    return counts


def aggregate(contributions: Sequence[UserContribution]) -> List[WeightedTrack]:
    """Merge contributions into distinct tracks weighted against shared taste.

    ``final_weight`` is the first-seen source weight divided by the number of
    users holding the track, so overlap between users is suppressed and tracks
    unique to one listener keep their full weight. Output follows first-seen
    order across contributions.
    """
    counts = popularity(contributions)
    first_seen: Dict[str, Track] = {}
    for contribution in contributions:
        for track in contribution.tracks:
            first_seen.setdefault(track.id, track)

    return [
        WeightedTrack(
            track=track,
            popularity_count=counts[track_id],
            final_weight=track.source_weight / counts[track_id],
        )
        for track_id, track in first_seen.items()
    ]
