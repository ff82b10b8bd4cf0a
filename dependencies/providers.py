"""Dependency providers wiring repositories, flows and shared services."""

from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from core.logger import get_logger
from dependencies.auth import get_current_account_id, get_token_service
from infrastructure.db.mysql_client import get_session_factory
from infrastructure.repositories.account_repository import AccountRepository
from infrastructure.repositories.channel_repository import ChannelRepository
from infrastructure.repositories.sms_log_repository import SmsLogRepository
from services.basic.auth import AuthService, QuickLoginFlow, RegistrationFlow
from services.basic.credentials import CredentialValidator
from services.basic.notify import ChannelNotifier
from services.basic.security import BcryptPasswordHasher, TokenService
from services.basic.sms import SmsCodeVerifier
from services.basic.tasks import BackgroundRunner

logger = get_logger(__name__)


# -----------------------------------------------------------------
# Process-wide services
# -----------------------------------------------------------------

_notifier: Optional[ChannelNotifier] = None
_runner: Optional[BackgroundRunner] = None


def get_notifier() -> ChannelNotifier:
    """Provide a singleton notifier so its HTTP client is reused."""

    global _notifier
    if _notifier is None:
        _notifier = ChannelNotifier()
        if not _notifier.enabled:
            logger.warning("NOTIFY_URL not set; admin notification on quick login is disabled")
    return _notifier


def get_background_runner() -> BackgroundRunner:
    global _runner
    if _runner is None:
        # Hard cap per background job
        _runner = BackgroundRunner(timeout=settings.NOTIFY_TIMEOUT_SECONDS + settings.IO_TIMEOUT_SECONDS)
    return _runner


async def close_background_services() -> None:
    """Shutdown hook: finish pending background jobs and close HTTP clients."""

    global _notifier, _runner
    if _runner is not None:
        await _runner.drain()
        _runner = None
    if _notifier is not None:
        await _notifier.aclose()
        _notifier = None


def get_password_hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher()


def get_credential_validator() -> CredentialValidator:
    return CredentialValidator()


# -----------------------------------------------------------------
# Repository providers
# -----------------------------------------------------------------

def get_account_repository(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
) -> AccountRepository:
    return AccountRepository(factory)


def get_sms_log_repository(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
) -> SmsLogRepository:
    return SmsLogRepository(factory)


def get_channel_repository(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
) -> ChannelRepository:
    return ChannelRepository(factory)


# -----------------------------------------------------------------
# Flow / auth providers
# -----------------------------------------------------------------

def get_auth_service(
    accounts: Annotated[AccountRepository, Depends(get_account_repository)],
    sms_logs: Annotated[SmsLogRepository, Depends(get_sms_log_repository)],
    channels: Annotated[ChannelRepository, Depends(get_channel_repository)],
    hasher: Annotated[BcryptPasswordHasher, Depends(get_password_hasher)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    validator: Annotated[CredentialValidator, Depends(get_credential_validator)],
    notifier: Annotated[ChannelNotifier, Depends(get_notifier)],
    runner: Annotated[BackgroundRunner, Depends(get_background_runner)],
) -> AuthService:
    """Compose the flows from explicit collaborators."""

    verifier = SmsCodeVerifier(sms_logs)
    registration = RegistrationFlow(
        accounts=accounts,
        verifier=verifier,
        hasher=hasher,
        tokens=token_service,
        validator=validator,
    )
    quick_login = QuickLoginFlow(
        accounts=accounts,
        channels=channels,
        verifier=verifier,
        hasher=hasher,
        tokens=token_service,
        notifier=notifier,
        runner=runner,
        validator=validator,
    )
    return AuthService(
        accounts=accounts,
        registration=registration,
        quick_login=quick_login,
        hasher=hasher,
        tokens=token_service,
        validator=validator,
    )


# -----------------------------------------------------------------
# Type aliases for FastAPI Depends
# -----------------------------------------------------------------

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentAccountIdDep = Annotated[str, Depends(get_current_account_id)]
