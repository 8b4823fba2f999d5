"""Push notification sink.

ServerChan (https://sct.ftqq.com) forwards a title and a markdown body to
WeChat. Delivery is one attempt per message; failures surface as
NotificationError and the caller decides whether they matter.
"""

import asyncio
from abc import ABC, abstractmethod

import aiohttp

from funding_radar.config import NotifierSettings
from funding_radar.exceptions import ConfigurationError, NotificationError
from funding_radar.logging import get_logger

logger = get_logger(__name__)


class NotificationSink(ABC):
    """Destination for alert messages."""

    @abstractmethod
    async def send(self, title: str, body: str) -> str:
        """Deliver one message and return the upstream receipt.

        Raises:
            NotificationError: If delivery failed.
        """
        ...


class ServerChanNotifier(NotificationSink):
    """Sends messages through the ServerChan Turbo API.

    Raises:
        ConfigurationError: At construction when no send key is configured.
    """

    def __init__(self, settings: NotifierSettings) -> None:
        sendkey = settings.sendkey.get_secret_value()
        if not sendkey:
            raise ConfigurationError("SC_SENDKEY not configured")
        self._url = f"{settings.base_url.rstrip('/')}/{sendkey}.send"
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout_seconds)

    async def send(self, title: str, body: str) -> str:
        logger.info("notification_sending", title=title)
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    self._url, data={"text": title, "desp": body}
                ) as resp:
                    receipt = await resp.text()
                    if resp.status >= 400:
                        raise NotificationError(
                            f"ServerChan HTTP {resp.status}: {receipt[:200]}"
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NotificationError(f"ServerChan request failed: {exc}") from exc

        logger.info("notification_sent", title=title, receipt=receipt[:200])
        return receipt
