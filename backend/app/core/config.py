from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_ART_URL = "https://via.placeholder.com/150"

FREQUENT = "frequent"
RECENT = "recent"
# categories the Spotify signal fetcher knows how to fetch
SIGNAL_CATEGORIES = (FREQUENT, RECENT)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SONGPOOL_", extra="allow")

    environment: str = "development"
    log_level: str = "INFO"
    database_dsn: str = "sqlite+aiosqlite:///./songpool.db"
    service_token: str = ""
    allow_origins: List[str] = ["*"]
    http_timeout_seconds: float = 15.0
    http_retries: int = 3

    # signal category -> source weight; dict order is the order categories are merged in
    signal_weights: Dict[str, float] = {"frequent": 0.7, "recent": 0.3}
    signal_limits: Dict[str, int] = {"frequent": 50, "recent": 30}
    top_tracks_time_range: Literal["short_term", "medium_term", "long_term"] = "medium_term"
    max_tracks_per_user: int = 80
    signal_fetch_timeout_seconds: float = 10.0
    expansion_factor: int = 10
    placeholder_art_url: str = PLACEHOLDER_ART_URL

    @field_validator("signal_weights")
    @classmethod
    def _check_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        for category, weight in v.items():
            if not 0.0 < weight <= 1.0:
                raise ValueError(f"weight for {category!r} must be in (0, 1], got {weight}")
        return v

    @field_validator("signal_limits")
    @classmethod
    def _check_limits(cls, v: Dict[str, int]) -> Dict[str, int]:
        for category, limit in v.items():
            if not 1 <= limit <= 50:
                raise ValueError(f"limit for {category!r} must be between 1 and 50, got {limit}")
        return v

    @field_validator("expansion_factor", "max_tracks_per_user")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def _check_categories(self) -> "Settings":
        unsupported = set(self.signal_limits) - set(SIGNAL_CATEGORIES)
        if unsupported:
            raise ValueError(
                f"signal_limits references unsupported categories {sorted(unsupported)}; "
                f"expected a subset of {list(SIGNAL_CATEGORIES)}"
            )
        unknown = set(self.signal_limits) - set(self.signal_weights)
        if unknown:
            raise ValueError(f"signal_limits references categories without a weight: {sorted(unknown)}")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
