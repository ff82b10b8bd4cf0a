"""
Tests for SMS quick login (find-or-create with activation).
"""

import asyncio

import pytest
from jose import jwt

from core.exceptions import CodeMismatchError, DuplicatePhoneError, InvalidCredentialFormatError
from infrastructure.models.account import AccountStatus
from services.basic.auth import QuickLoginFlow
from services.basic.sms import SmsCodeVerifier
from services.basic.tasks import BackgroundRunner

from tests.conftest import TEST_SECRET, FakeAccounts, FakeNotifier


def build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner):
    return QuickLoginFlow(
        accounts=accounts,
        channels=channels,
        verifier=SmsCodeVerifier(sms_logs),
        hasher=hasher,
        tokens=token_service,
        notifier=notifier,
        runner=runner,
        default_password="123456",
        nick_prefix="用户",
    )


class TestQuickLoginCreate:

    async def test_creates_active_account(self, quick_login_flow, sms_logs, accounts, runner):
        sms_logs.issue("+1555", "0000")

        result = await quick_login_flow.run("+1555", "0000", "web")
        await runner.drain()

        assert result.user.phone == "+1555"
        assert result.user.status == AccountStatus.ACTIVE
        assert result.user.channel_id == 7
        assert result.user.created_at == result.user.activated_at
        assert result.user.display_name.startswith("用户")
        suffix = result.user.display_name[len("用户"):]
        assert suffix.isdigit() and len(suffix) == 7
        assert accounts.by_id[result.user.id].password_hash == "hashed:123456"

    async def test_unknown_channel_maps_to_zero(self, quick_login_flow, sms_logs):
        sms_logs.issue("+1555", "0000")
        result = await quick_login_flow.run("+1555", "0000", "no-such-channel")
        assert result.user.channel_id == 0

    async def test_issues_light_token(self, quick_login_flow, sms_logs):
        sms_logs.issue("+1555", "0000")
        result = await quick_login_flow.run("+1555", "0000", "web")

        claims = jwt.decode(result.token, TEST_SECRET, algorithms=["HS256"])
        assert claims["sub"] == result.user.id
        assert "phone" not in claims

    async def test_response_has_no_password(self, quick_login_flow, sms_logs):
        sms_logs.issue("+1555", "0000")
        result = await quick_login_flow.run("+1555", "0000")
        assert "password" not in result.model_dump_json()

    async def test_wrong_code(self, quick_login_flow, sms_logs, accounts, notifier):
        sms_logs.issue("+1555", "0000")

        with pytest.raises(CodeMismatchError):
            await quick_login_flow.run("+1555", "1234", "web")
        assert accounts.total_calls == 0
        assert notifier.phones == []

    async def test_malformed_phone(self, quick_login_flow, sms_logs):
        with pytest.raises(InvalidCredentialFormatError):
            await quick_login_flow.run("not-a-phone", "0000")
        assert sms_logs.calls == 0


class TestQuickLoginIdempotence:

    async def test_second_login_returns_same_account(self, quick_login_flow, sms_logs, accounts, runner):
        sms_logs.issue("+1555", "0000")
        first = await quick_login_flow.run("+1555", "0000", "web")

        sms_logs.issue("+1555", "0000")
        second = await quick_login_flow.run("+1555", "0000", "web")
        await runner.drain()

        assert second.user.id == first.user.id
        assert second.user.status == AccountStatus.ACTIVE
        assert second.user.channel_id == first.user.channel_id
        assert second.token != first.token
        assert len(accounts.by_id) == 1
        assert accounts.calls["create"] == 1
        assert accounts.calls["update_status"] == 0

    async def test_registered_account_logs_in_unchanged(self, quick_login_flow, sms_logs, accounts):
        existing = accounts.seed("+1555")
        sms_logs.issue("+1555", "0000")

        result = await quick_login_flow.run("+1555", "0000", "web")

        assert result.user.id == existing.id
        assert result.user.channel_id == 0
        assert accounts.calls["create"] == 0


class VanishingAccounts(FakeAccounts):
    """Create always collides, yet the re-read finds nothing."""

    async def create(self, new_account):
        self.calls["create"] += 1
        raise DuplicatePhoneError()

    async def find_by_phone(self, phone):
        self.calls["find_by_phone"] += 1
        return None


class TestQuickLoginRace:

    async def test_concurrent_first_logins_share_one_account(
        self, channels, sms_logs, hasher, token_service, notifier, runner
    ):
        accounts = FakeAccounts(find_delay=0.01)
        flow = build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner)
        sms_logs.issue("+1555", "0000")

        first, second = await asyncio.gather(
            flow.run("+1555", "0000", "web"),
            flow.run("+1555", "0000", "web"),
        )
        await runner.drain()

        assert first.user.id == second.user.id
        assert first.token != second.token
        assert accounts.calls["create"] == 2
        assert len(accounts.by_id) == 1

    async def test_duplicate_without_winner_is_raised(
        self, channels, sms_logs, hasher, token_service, notifier, runner
    ):
        accounts = VanishingAccounts()
        flow = build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner)
        sms_logs.issue("+1555", "0000")

        with pytest.raises(DuplicatePhoneError):
            await flow.run("+1555", "0000", "web")
        await runner.drain()

        assert accounts.calls["create"] == 1
        assert accounts.calls["find_by_phone"] == 2
        assert accounts.by_id == {}


class TestQuickLoginActivation:

    async def test_inactive_account_is_activated(self, quick_login_flow, sms_logs, accounts, runner):
        dormant = accounts.seed("+1555", status=AccountStatus.INACTIVE)
        sms_logs.issue("+1555", "0000")

        result = await quick_login_flow.run("+1555", "0000")

        assert result.user.id == dormant.id
        assert result.user.status == AccountStatus.ACTIVE
        assert result.user.activated_at is not None

        await runner.drain()
        stored = accounts.by_id[dormant.id]
        assert stored.status == AccountStatus.ACTIVE
        assert stored.activated_at == result.user.activated_at
        assert accounts.calls["update_status"] == 1


class TestQuickLoginNotification:

    async def test_notifies_admin_with_phone(self, quick_login_flow, sms_logs, notifier, runner):
        sms_logs.issue("+1555", "0000")
        await quick_login_flow.run("+1555", "0000")
        await runner.drain()
        assert notifier.phones == ["+1555"]

    async def test_failing_notification_does_not_fail_login(
        self, accounts, channels, sms_logs, hasher, token_service
    ):
        runner = BackgroundRunner(timeout=0.2)
        notifier = FakeNotifier(error=ConnectionError("admin api down"))
        flow = build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner)
        sms_logs.issue("+1555", "0000")

        result = await flow.run("+1555", "0000", "web")
        await runner.drain()

        assert result.token
        assert notifier.phones == ["+1555"]

    async def test_hanging_notification_does_not_block_login(
        self, accounts, channels, sms_logs, hasher, token_service
    ):
        runner = BackgroundRunner(timeout=0.05)
        notifier = FakeNotifier(delay=5)
        flow = build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner)
        sms_logs.issue("+1555", "0000")

        result = await asyncio.wait_for(flow.run("+1555", "0000"), timeout=1)
        assert result.token
        assert runner.pending == 1

        await runner.drain()
        assert runner.pending == 0

    async def test_disabled_notifier_is_skipped(
        self, accounts, channels, sms_logs, hasher, token_service
    ):
        runner = BackgroundRunner()
        notifier = FakeNotifier(enabled=False)
        flow = build_flow(accounts, channels, sms_logs, hasher, token_service, notifier, runner)
        sms_logs.issue("+1555", "0000")

        await flow.run("+1555", "0000")

        assert runner.pending == 0
        assert notifier.phones == []
