"""Read access to the SMS log written by the SMS sender."""

from __future__ import annotations

import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import UnavailableError
from infrastructure.models.sms_log import SmsLog, SmsLogEntry


class SmsLogRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def latest_for_phone(self, phone: str) -> Optional[SmsLogEntry]:
        """Return the most recently issued entry (highest id) for `phone`."""

        statement = (
            select(SmsLog)
            .where(SmsLog.phone == phone)
            .order_by(SmsLog.id.desc())
            .limit(1)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                record = result.scalar_one_or_none()
        except OperationalError as exc:
            raise UnavailableError(detail=str(exc)) from exc
        if record is None:
            return None
        return SmsLogEntry.model_validate(record)

    async def record(self, phone: str, code: str, issued_at: Optional[int] = None) -> SmsLogEntry:
        entry = SmsLog(phone=phone, code=code, issued_at=issued_at or int(time.time()))
        async with self._session_factory() as session:
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
            return SmsLogEntry.model_validate(entry)
