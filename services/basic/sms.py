"""SMS code verification against the most recently issued code for a phone."""

from __future__ import annotations

from typing import Optional, Protocol

from core.exceptions import CodeMismatchError
from core.logger import get_logger, mask_phone
from infrastructure.models.sms_log import SmsLogEntry

logger = get_logger(__name__)


class SmsLogSource(Protocol):
    async def latest_for_phone(self, phone: str) -> Optional[SmsLogEntry]: ...


class SmsCodeVerifier:
    """Checks a submitted code against the latest SMS log entry for the phone.

    Successful verification does not consume the entry: the code stays valid
    until a newer one is issued for the same phone.
    """

    def __init__(self, sms_logs: SmsLogSource) -> None:
        self._sms_logs = sms_logs

    async def verify(self, phone: str, submitted_code: str) -> None:
        entry = await self._sms_logs.latest_for_phone(phone)
        if entry is None:
            logger.info("No SMS code on record for %s", mask_phone(phone))
            raise CodeMismatchError()
        if entry.code != submitted_code:
            logger.info("SMS code mismatch for %s (entry id=%s)", mask_phone(phone), entry.id)
            raise CodeMismatchError()
