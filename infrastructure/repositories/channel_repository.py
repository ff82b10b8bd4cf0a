"""Channel lookups (read-only reference data)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import UnavailableError
from infrastructure.models.channel import Channel, ChannelRecord


class ChannelRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_name(self, name: str) -> Optional[ChannelRecord]:
        if not name:
            return None
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Channel).where(Channel.name == name))
                record = result.scalar_one_or_none()
        except OperationalError as exc:
            raise UnavailableError(detail=str(exc)) from exc
        if record is None:
            return None
        return ChannelRecord.model_validate(record)

    async def add(self, name: str) -> ChannelRecord:
        channel = Channel(name=name)
        async with self._session_factory() as session:
            session.add(channel)
            await session.commit()
            await session.refresh(channel)
            return ChannelRecord.model_validate(channel)
