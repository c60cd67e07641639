from __future__ import annotations

from fastapi import APIRouter, Depends

from ...db.store import SqlUserStore
from ...schemas.pool import HealthResponse
from ..deps import get_user_store

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def get_health(store: SqlUserStore = Depends(get_user_store)) -> HealthResponse:
    return HealthResponse(ok=True, user_count=await store.count())
