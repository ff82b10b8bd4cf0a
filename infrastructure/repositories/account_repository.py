"""Account repository for MySQL backed persistence."""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import DuplicatePhoneError, UnavailableError
from core.logger import get_logger, mask_phone
from infrastructure.models.account import Account, AccountStatus, DBAccount, NewAccount

logger = get_logger(__name__)


class AccountRepository:
    """Data access layer for the `accounts` table.

    Each call opens its own session, so the repository can be used from
    background tasks that outlive the request which scheduled them.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_phone(self, phone: str) -> Optional[DBAccount]:
        return await self._find_one(select(Account).where(Account.phone == phone))

    async def find_by_id(self, account_id: str) -> Optional[DBAccount]:
        return await self._find_one(select(Account).where(Account.id == account_id))

    async def create(self, new_account: NewAccount) -> DBAccount:
        """Insert an account; the unique index on `phone` rejects duplicates atomically."""

        account = Account(id=str(uuid4()), **new_account.model_dump())
        try:
            async with self._session_factory() as session:
                session.add(account)
                try:
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    logger.info("Duplicate phone on create: %s", mask_phone(new_account.phone))
                    raise DuplicatePhoneError() from exc
                await session.refresh(account)
                return DBAccount.model_validate(account)
        except OperationalError as exc:
            raise UnavailableError(detail=str(exc)) from exc

    async def update_status(
        self,
        account_id: str,
        status: AccountStatus,
        activated_at: Optional[int] = None,
    ) -> bool:
        values = {"status": int(status)}
        if activated_at is not None:
            values["activated_at"] = activated_at
        statement = (
            update(Account)
            .where(Account.id == account_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
                return result.rowcount > 0
        except OperationalError as exc:
            raise UnavailableError(detail=str(exc)) from exc

    async def _find_one(self, statement) -> Optional[DBAccount]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                record = result.scalar_one_or_none()
        except OperationalError as exc:
            raise UnavailableError(detail=str(exc)) from exc
        if record is None:
            return None
        return DBAccount.model_validate(record)
