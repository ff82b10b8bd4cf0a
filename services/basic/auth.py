"""Registration, password login and SMS quick-login workflows."""

from __future__ import annotations

import asyncio
import secrets
import time
from typing import Awaitable, Optional, Protocol, TypeVar

from core.config import settings
from core.exceptions import (
    AccountNotFoundError,
    AlreadyRegisteredError,
    DuplicatePhoneError,
    InvalidCredentialsError,
    UnavailableError,
)
from core.logger import get_logger, mask_phone
from infrastructure.models.account import (
    AccountResponse,
    AccountStatus,
    AuthResult,
    DBAccount,
    NewAccount,
    TokenResponse,
)
from infrastructure.models.channel import ChannelRecord
from services.basic.credentials import CredentialValidator
from services.basic.notify import ChannelNotifier
from services.basic.security import PasswordHasher, TokenService
from services.basic.sms import SmsCodeVerifier
from services.basic.tasks import BackgroundRunner

logger = get_logger(__name__)

T = TypeVar("T")


class AccountStore(Protocol):
    async def find_by_phone(self, phone: str) -> Optional[DBAccount]: ...

    async def find_by_id(self, account_id: str) -> Optional[DBAccount]: ...

    async def create(self, new_account: NewAccount) -> DBAccount: ...

    async def update_status(
        self, account_id: str, status: AccountStatus, activated_at: Optional[int] = None
    ) -> bool: ...


class ChannelStore(Protocol):
    async def find_by_name(self, name: str) -> Optional[ChannelRecord]: ...


async def with_deadline(job: Awaitable[T], timeout: Optional[float] = None) -> T:
    """Await `job` under the I/O deadline; a timeout becomes `UnavailableError`."""

    timeout = settings.IO_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(job, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise UnavailableError(detail=f"I/O deadline of {timeout}s exceeded.") from exc


def _now() -> int:
    return int(time.time())


def _to_response(account: DBAccount) -> AccountResponse:
    return AccountResponse.model_validate(account.model_dump(exclude={"password_hash"}))


class RegistrationFlow:
    """Explicit sign-up: validate, verify code, reject duplicates, hash, persist, issue token."""

    def __init__(
        self,
        accounts: AccountStore,
        verifier: SmsCodeVerifier,
        hasher: PasswordHasher,
        tokens: TokenService,
        validator: Optional[CredentialValidator] = None,
        io_timeout: Optional[float] = None,
    ) -> None:
        self._accounts = accounts
        self._verifier = verifier
        self._hasher = hasher
        self._tokens = tokens
        self._validator = validator or CredentialValidator()
        self._io_timeout = io_timeout

    async def run(self, phone: str, password: str, code: str) -> AuthResult:
        self._validator.validate(phone, password)
        await with_deadline(self._verifier.verify(phone, code), self._io_timeout)

        existing = await with_deadline(self._accounts.find_by_phone(phone), self._io_timeout)
        if existing is not None:
            raise AlreadyRegisteredError()

        password_hash = await with_deadline(self._hasher.hash_password(password), self._io_timeout)
        now = _now()
        created = await with_deadline(
            self._accounts.create(
                NewAccount(
                    phone=phone,
                    password_hash=password_hash,
                    display_name=phone,
                    status=AccountStatus.ACTIVE,
                    created_at=now,
                    activated_at=now,
                )
            ),
            self._io_timeout,
        )
        logger.info("Registered account %s for %s", created.id, mask_phone(phone))

        token = self._tokens.create_access_token(created)
        return AuthResult(user=_to_response(created), token=token.token)


class QuickLoginFlow:
    """Passwordless login by SMS code; creates or activates the account as needed."""

    def __init__(
        self,
        accounts: AccountStore,
        channels: ChannelStore,
        verifier: SmsCodeVerifier,
        hasher: PasswordHasher,
        tokens: TokenService,
        notifier: ChannelNotifier,
        runner: BackgroundRunner,
        validator: Optional[CredentialValidator] = None,
        default_password: Optional[str] = None,
        nick_prefix: Optional[str] = None,
        io_timeout: Optional[float] = None,
    ) -> None:
        self._accounts = accounts
        self._channels = channels
        self._verifier = verifier
        self._hasher = hasher
        self._tokens = tokens
        self._notifier = notifier
        self._runner = runner
        self._validator = validator or CredentialValidator()
        self._default_password = (
            settings.QUICK_LOGIN_DEFAULT_PASSWORD if default_password is None else default_password
        )
        self._nick_prefix = settings.QUICK_LOGIN_NICK_PREFIX if nick_prefix is None else nick_prefix
        self._io_timeout = io_timeout

    async def run(self, phone: str, code: str, channel: str = "") -> AuthResult:
        self._validator.validate(phone)
        await with_deadline(self._verifier.verify(phone, code), self._io_timeout)

        if self._notifier.enabled:
            self._runner.spawn(self._notifier.notify(phone), name=f"notify-admin:{mask_phone(phone)}")

        account = await with_deadline(self._accounts.find_by_phone(phone), self._io_timeout)
        if account is None:
            account = await self._create(phone, channel)
        elif not account.is_active:
            activated_at = _now()
            self._runner.spawn(
                self._accounts.update_status(account.id, AccountStatus.ACTIVE, activated_at),
                name=f"activate:{account.id}",
            )
            account = account.model_copy(
                update={"status": AccountStatus.ACTIVE, "activated_at": activated_at}
            )

        token = self._tokens.create_access_token(account, light=True)
        return AuthResult(user=_to_response(account), token=token.token)

    async def _create(self, phone: str, channel: str) -> DBAccount:
        password_hash = await with_deadline(
            self._hasher.hash_password(self._default_password), self._io_timeout
        )
        found_channel = await with_deadline(self._channels.find_by_name(channel), self._io_timeout)
        now = _now()
        new_account = NewAccount(
            phone=phone,
            password_hash=password_hash,
            display_name=f"{self._nick_prefix}{1000000 + secrets.randbelow(9000000)}",
            status=AccountStatus.ACTIVE,
            channel_id=found_channel.id if found_channel else 0,
            created_at=now,
            activated_at=now,
        )
        try:
            created = await with_deadline(self._accounts.create(new_account), self._io_timeout)
        except DuplicatePhoneError:
            # Concurrent quick login created it first
            winner = await with_deadline(self._accounts.find_by_phone(phone), self._io_timeout)
            if winner is None:
                raise
            return winner
        logger.info(
            "Quick login created account %s for %s (channel_id=%s)",
            created.id,
            mask_phone(phone),
            created.channel_id,
        )
        return created


class AuthService:
    """Facade used by the HTTP layer."""

    def __init__(
        self,
        accounts: AccountStore,
        registration: RegistrationFlow,
        quick_login: QuickLoginFlow,
        hasher: PasswordHasher,
        tokens: TokenService,
        validator: Optional[CredentialValidator] = None,
        io_timeout: Optional[float] = None,
    ) -> None:
        self._accounts = accounts
        self._registration = registration
        self._quick_login = quick_login
        self._hasher = hasher
        self._tokens = tokens
        self._validator = validator or CredentialValidator()
        self._io_timeout = io_timeout

    async def register(self, phone: str, password: str, code: str) -> AuthResult:
        return await self._registration.run(phone, password, code)

    async def quick_login(self, phone: str, code: str, channel: str = "") -> AuthResult:
        return await self._quick_login.run(phone, code, channel)

    async def login(self, phone: str, password: str) -> TokenResponse:
        self._validator.validate(phone, password)

        account = await with_deadline(self._accounts.find_by_phone(phone), self._io_timeout)
        if account is None:
            raise InvalidCredentialsError()
        matches = await with_deadline(
            self._hasher.verify_password(password, account.password_hash), self._io_timeout
        )
        if not matches:
            logger.info("Password mismatch for %s", mask_phone(phone))
            raise InvalidCredentialsError()

        token = self._tokens.create_access_token(account)
        return TokenResponse(token=token.token)

    async def get_account(self, account_id: str) -> AccountResponse:
        account = await with_deadline(self._accounts.find_by_id(account_id), self._io_timeout)
        if account is None:
            raise AccountNotFoundError()
        return _to_response(account)
