"""Best-effort notification to the admin API when a phone quick-logs in."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from core.config import settings
from core.logger import mask_phone

logger = structlog.get_logger(__name__)


class ChannelNotifier:
    """Posts `{"mobile": phone}` to the configured admin endpoint.

    Errors are raised to the caller; QuickLoginFlow only ever runs this on a
    BackgroundRunner, which logs and drops them.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = settings.NOTIFY_URL if url is None else url
        self._timeout = timeout or settings.NOTIFY_TIMEOUT_SECONDS
        self._client = client
        self._owns_client = client is None

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def notify(self, phone: str) -> None:
        if not self.enabled:
            return

        client = self._get_client()
        response = await client.post(
            self._url,
            json={"mobile": phone},
            headers={"Content-Type": "application/json;charset=utf-8"},
        )
        response.raise_for_status()
        logger.debug(
            "admin_notify_sent",
            phone=mask_phone(phone),
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
