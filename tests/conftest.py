"""
Pytest configuration, test doubles and fixtures for the account service.
"""

import asyncio
import os
import time
from collections import Counter
from uuid import uuid4

# Settings are read at import time
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing"
os.environ["NOTIFY_URL"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest

from core.exceptions import DuplicatePhoneError
from infrastructure.models.account import AccountStatus, DBAccount
from infrastructure.models.channel import ChannelRecord
from infrastructure.models.sms_log import SmsLogEntry
from services.basic.auth import AuthService, QuickLoginFlow, RegistrationFlow
from services.basic.credentials import CredentialValidator
from services.basic.security import TokenService
from services.basic.sms import SmsCodeVerifier
from services.basic.tasks import BackgroundRunner

TEST_SECRET = "test-secret-key-for-testing"


class FakeSmsLogs:
    """In-memory SMS log with a call counter."""

    def __init__(self):
        self.entries = []
        self.calls = 0
        self._next_id = 1

    def issue(self, phone, code):
        entry = SmsLogEntry(id=self._next_id, phone=phone, code=code, issued_at=int(time.time()))
        self._next_id += 1
        self.entries.append(entry)
        return entry

    async def latest_for_phone(self, phone):
        self.calls += 1
        matching = [e for e in self.entries if e.phone == phone]
        if not matching:
            return None
        return max(matching, key=lambda e: e.id)


class FakeAccounts:
    """In-memory account store enforcing phone uniqueness on create."""

    def __init__(self, find_delay=0.0):
        self.by_id = {}
        self.calls = Counter()
        self.find_delay = find_delay

    def seed(self, phone, status=AccountStatus.ACTIVE, password_hash="hashed:Secret123"):
        account = DBAccount(
            id=str(uuid4()),
            phone=phone,
            password_hash=password_hash,
            display_name=phone,
            status=status,
            channel_id=0,
            created_at=int(time.time()) - 3600,
            activated_at=None if status == AccountStatus.INACTIVE else int(time.time()) - 3600,
        )
        self.by_id[account.id] = account
        return account

    async def find_by_phone(self, phone):
        self.calls["find_by_phone"] += 1
        # Snapshot before the delay, like a read that returns before a concurrent commit
        found = next((a for a in self.by_id.values() if a.phone == phone), None)
        if self.find_delay:
            await asyncio.sleep(self.find_delay)
        return found

    async def find_by_id(self, account_id):
        self.calls["find_by_id"] += 1
        return self.by_id.get(account_id)

    async def create(self, new_account):
        self.calls["create"] += 1
        if any(a.phone == new_account.phone for a in self.by_id.values()):
            raise DuplicatePhoneError()
        account = DBAccount(id=str(uuid4()), **new_account.model_dump())
        self.by_id[account.id] = account
        return account

    async def update_status(self, account_id, status, activated_at=None):
        self.calls["update_status"] += 1
        account = self.by_id.get(account_id)
        if account is None:
            return False
        update = {"status": status}
        if activated_at is not None:
            update["activated_at"] = activated_at
        self.by_id[account_id] = account.model_copy(update=update)
        return True

    @property
    def total_calls(self):
        return sum(self.calls.values())


class FakeChannels:
    def __init__(self, channels=None):
        self.channels = {name: ChannelRecord(id=cid, name=name) for name, cid in (channels or {}).items()}

    async def find_by_name(self, name):
        return self.channels.get(name)


class PlainHasher:
    """Reversible stand-in for bcrypt so tests stay fast."""

    async def hash_password(self, password):
        return f"hashed:{password}"

    async def verify_password(self, password, password_hash):
        return password_hash == f"hashed:{password}"


class FakeNotifier:
    def __init__(self, enabled=True, error=None, delay=0.0):
        self.enabled = enabled
        self.error = error
        self.delay = delay
        self.phones = []

    async def notify(self, phone):
        self.phones.append(phone)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error


@pytest.fixture
def sms_logs():
    return FakeSmsLogs()


@pytest.fixture
def accounts():
    return FakeAccounts()


@pytest.fixture
def channels():
    return FakeChannels({"web": 7, "app-store": 12})


@pytest.fixture
def hasher():
    return PlainHasher()


@pytest.fixture
def token_service():
    return TokenService(secret_key=TEST_SECRET, algorithm="HS256", access_expires_minutes=30)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def runner():
    return BackgroundRunner(timeout=0.2)


@pytest.fixture
def validator():
    return CredentialValidator(password_min_length=6)


@pytest.fixture
def registration_flow(accounts, sms_logs, hasher, token_service, validator):
    return RegistrationFlow(
        accounts=accounts,
        verifier=SmsCodeVerifier(sms_logs),
        hasher=hasher,
        tokens=token_service,
        validator=validator,
        io_timeout=1,
    )


@pytest.fixture
def quick_login_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner, validator):
    return QuickLoginFlow(
        accounts=accounts,
        channels=channels,
        verifier=SmsCodeVerifier(sms_logs),
        hasher=hasher,
        tokens=token_service,
        notifier=notifier,
        runner=runner,
        validator=validator,
        default_password="123456",
        nick_prefix="用户",
        io_timeout=1,
    )


@pytest.fixture
def auth_service(accounts, registration_flow, quick_login_flow, hasher, token_service, validator):
    return AuthService(
        accounts=accounts,
        registration=registration_flow,
        quick_login=quick_login_flow,
        hasher=hasher,
        tokens=token_service,
        validator=validator,
        io_timeout=1,
    )
