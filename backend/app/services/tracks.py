from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..core.config import PLACEHOLDER_ART_URL
from .errors import MalformedRecordError

DEFAULT_SIGNAL_WEIGHTS: Dict[str, float] = {"frequent": 0.7, "recent": 0.3}


@dataclass(frozen=True, slots=True)
class Track:
    """Canonical track shape shared by every stage of pool building."""

    id: str
    # display metadata stays out of equality
    title: str = field(compare=False)
    artist_names: Tuple[str, ...] = field(compare=False)
    album_art_url: str = field(compare=False)
    playable_uri: str
    source_weight: float
    category: str
    preview_url: Optional[str] = field(default=None, compare=False)

    @property
    def artist(self) -> str:
        return ", ".join(self.artist_names)


@dataclass(slots=True)
class UserContribution:
    user_id: str
    tracks: List[Track] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WeightedTrack:
    track: Track
    popularity_count: int
    final_weight: float

    @property
    def id(self) -> str:
        return self.track.id


def _as_list(value: Any, what: str, track_id: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise MalformedRecordError(f"catalog item {track_id} has {what} of type {type(value).__name__}")
    return list(value)


def _first_image(images: Iterable[Any]) -> Optional[str]:
    return next(
        (img["url"] for img in images if isinstance(img, Mapping) and isinstance(img.get("url"), str) and img["url"]),
        None,
    )


def normalize(
    raw_item: Mapping[str, Any] | None,
    category: str,
    *,
    weights: Mapping[str, float] | None = None,
    placeholder_art_url: str = PLACEHOLDER_ART_URL,
) -> Track:
    """Map a raw catalog item from ``category`` into a :class:`Track`.

    Top-track items are bare track objects; recently-played items wrap the
    track in a ``track`` key next to ``played_at``. Both shapes are accepted.

    Raises :class:`MalformedRecordError` when the item has no id, no
    playable URI, or artists or album images that are not lists. Raises
    ``ValueError`` for a category without a weight.
    """
    weights = DEFAULT_SIGNAL_WEIGHTS if weights is None else weights
    if category not in weights:
        raise ValueError(f"unknown signal category {category!r}")

    if not isinstance(raw_item, Mapping):
        raise MalformedRecordError(f"expected a mapping, got {type(raw_item).__name__}")
    payload: Mapping[str, Any] = raw_item
    if isinstance(payload.get("track"), Mapping):
        payload = payload["track"]

    track_id = payload.get("id")
    if not track_id:
        raise MalformedRecordError("catalog item has no id")
    uri = payload.get("uri")
    if not uri:
        raise MalformedRecordError(f"catalog item {track_id} has no playable uri")

    artists = tuple(
        str(artist["name"])
        for artist in _as_list(payload.get("artists"), "artists", track_id)
        if isinstance(artist, Mapping) and artist.get("name")
    )
    album = payload.get("album") if isinstance(payload.get("album"), Mapping) else {}

    return Track(
        id=str(track_id),
        title=str(payload.get("name") or ""),
        artist_names=artists,
        album_art_url=_first_image(_as_list(album.get("images"), "album images", track_id)) or placeholder_art_url,
        playable_uri=str(uri),
        source_weight=float(weights[category]),
        category=category,
        preview_url=payload.get("preview_url") if isinstance(payload.get("preview_url"), str) else None,
    )
