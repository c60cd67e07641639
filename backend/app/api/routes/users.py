from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.config import Settings
from ...core.security import verify_service_token
from ...db.store import SqlUserStore
from ...schemas.pool import PoolTrack, UserSummary, UserUpsert
from ...services.errors import AuthError, MalformedRecordError, SignalFetchError
from ...services.sequencer import distinct
from ...services.tracks import normalize
from ...spotify.signals import FREQUENT, SignalFetcher, UserCredential
from ..deps import get_settings_dep, get_signal_fetcher, get_user_store

router = APIRouter(prefix="/v1/users", tags=["users"], dependencies=[Depends(verify_service_token)])

logger = logging.getLogger("users")


def _summary(user) -> UserSummary:
    return UserSummary(
        id=user.id,
        display_name=user.display_name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("", response_model=List[UserSummary])
async def list_users(store: SqlUserStore = Depends(get_user_store)) -> List[UserSummary]:
    return [_summary(user) for user in await store.list_users()]


@router.put("/{user_id}", response_model=UserSummary)
async def upsert_user(
    user_id: str,
    payload: UserUpsert,
    store: SqlUserStore = Depends(get_user_store),
) -> UserSummary:
    user = await store.upsert(
        user_id,
        access_token=payload.access_token,
        display_name=payload.display_name,
        refresh_token=payload.refresh_token,
    )
    logger.info("Registered credentials for %s", user_id)
    return _summary(user)


@router.get("/{user_id}/top-tracks", response_model=List[PoolTrack])
async def get_top_tracks(
    user_id: str,
    *,
    store: SqlUserStore = Depends(get_user_store),
    fetcher: SignalFetcher = Depends(get_signal_fetcher),
    settings: Settings = Depends(get_settings_dep),
) -> List[PoolTrack]:
    user = await store.get(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")

    credential = UserCredential(user_id=user.id, access_token=user.access_token, display_name=user.display_name)
    limit = settings.signal_limits.get(FREQUENT, 50)
    try:
        raw_items = await fetcher.fetch(credential, FREQUENT, limit)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except SignalFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    tracks = []
    for item in raw_items:
        try:
            tracks.append(
                normalize(item, FREQUENT, weights=settings.signal_weights, placeholder_art_url=settings.placeholder_art_url)
            )
        except MalformedRecordError as exc:
            logger.debug("Skipping top track for %s: %s", user_id, exc)
    return [PoolTrack.from_track(track) for track in distinct(tracks)]
