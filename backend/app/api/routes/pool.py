from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.config import Settings
from ...core.security import verify_service_token
from ...schemas.pool import PoolErrorDetail, PoolRequest, PoolResponse, PoolTrack
from ...services.errors import NoUsersRequested, PoolBuildError
from ...services.pool import UserStore, build_pool
from ...services.sequencer import distinct
from ...spotify.signals import SignalFetcher
from ..deps import get_settings_dep, get_signal_fetcher, get_user_store

router = APIRouter(prefix="/v1", tags=["pools"], dependencies=[Depends(verify_service_token)])


def _error_status(exc: PoolBuildError) -> int:
    if isinstance(exc, NoUsersRequested):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_404_NOT_FOUND


@router.post("/pools", response_model=PoolResponse)
async def create_pool(
    payload: PoolRequest,
    *,
    store: UserStore = Depends(get_user_store),
    fetcher: SignalFetcher = Depends(get_signal_fetcher),
    settings: Settings = Depends(get_settings_dep),
) -> PoolResponse:
    try:
        tracks = await build_pool(
            payload.user_ids,
            payload.mode,
            user_store=store,
            fetcher=fetcher,
            settings=settings,
        )
    except PoolBuildError as exc:
        detail = PoolErrorDetail(kind=exc.kind, message=str(exc))
        raise HTTPException(status_code=_error_status(exc), detail=detail.model_dump()) from exc

    if payload.distinct:
        tracks = distinct(tracks)
    return PoolResponse(
        mode=payload.mode,
        size=len(tracks),
        tracks=[PoolTrack.from_track(track) for track in tracks],
    )
