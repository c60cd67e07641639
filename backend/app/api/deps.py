from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings
from ..db.session import get_session
from ..db.store import SqlUserStore
from ..spotify.signals import SignalFetcher, SpotifySignalFetcher


async def get_settings_dep() -> Settings:
    return get_settings()


async def get_db_session() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


async def get_user_store(session: AsyncSession = Depends(get_db_session)) -> SqlUserStore:
    return SqlUserStore(session)


async def get_signal_fetcher(settings: Settings = Depends(get_settings_dep)) -> SignalFetcher:
    return SpotifySignalFetcher(
        timeout=settings.http_timeout_seconds,
        retries=settings.http_retries,
        time_range=settings.top_tracks_time_range,
    )
