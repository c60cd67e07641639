from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..spotify.signals import UserCredential
from . import models

logger = logging.getLogger("users")


def _to_credential(user: models.User) -> UserCredential:
    return UserCredential(user_id=user.id, access_token=user.access_token, display_name=user.display_name)


class SqlUserStore:
    """Registered users backed by the ``users`` table.

    :meth:`resolve` hands the pool builder immutable credentials, so nothing
    downstream touches the session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def resolve(self, user_ids: Sequence[str]) -> List[UserCredential]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []
        result = await self.session.execute(select(models.User).where(models.User.id.in_(ids)))
        by_id = {user.id: user for user in result.scalars()}
        missing = [uid for uid in ids if uid not in by_id]
        if missing:
            logger.info("Ignoring unregistered users: %s", missing)
        # request order decides round-robin turn order
        return [_to_credential(by_id[uid]) for uid in ids if uid in by_id]

    async def get(self, user_id: str) -> Optional[models.User]:
        return await self.session.get(models.User, user_id)

    async def list_users(self) -> List[models.User]:
        result = await self.session.execute(select(models.User).order_by(models.User.display_name, models.User.id))
        return list(result.scalars())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(models.User))
        return int(result.scalar_one())

    async def upsert(
        self,
        user_id: str,
        *,
        access_token: str,
        display_name: str = "",
        refresh_token: str | None = None,
    ) -> models.User:
        user = await self.session.get(models.User, user_id)
        if user is None:
            user = models.User(id=user_id, display_name=display_name, access_token=access_token, refresh_token=refresh_token)
            self.session.add(user)
        else:
            user.access_token = access_token
            if display_name:
                user.display_name = display_name
            if refresh_token is not None:
                user.refresh_token = refresh_token
        await self.session.commit()
        await self.session.refresh(user)
        return user
