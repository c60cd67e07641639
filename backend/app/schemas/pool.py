from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..services.tracks import Track


class PoolRequest(BaseModel):
    user_ids: List[str] = Field(default_factory=list, description="Registered user ids to build the pool from")
    mode: Literal["weighted", "round-robin"] = "weighted"
    distinct: bool = Field(False, description="Collapse repeated slots so each track appears once")


class PoolTrack(BaseModel):
    id: str
    name: str
    artist: str
    artists: List[str]
    album_cover: str
    uri: str
    preview_url: Optional[str] = None
    category: str

    @classmethod
    def from_track(cls, track: Track) -> "PoolTrack":
        return cls(
            id=track.id,
            name=track.title,
            artist=track.artist,
            artists=list(track.artist_names),
            album_cover=track.album_art_url,
            uri=track.playable_uri,
            preview_url=track.preview_url,
            category=track.category,
        )


class PoolResponse(BaseModel):
    mode: Literal["weighted", "round-robin"]
    size: int
    tracks: List[PoolTrack] = []


class PoolErrorDetail(BaseModel):
    kind: str
    message: str


class UserUpsert(BaseModel):
    access_token: str = Field(..., min_length=1)
    display_name: str = ""
    refresh_token: Optional[str] = None


class UserSummary(BaseModel):
    id: str
    display_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    ok: bool = True
    user_count: int = 0
