import asyncio
from dataclasses import dataclass
from typing import Iterable

import structlog

from shared.config import settings
from shared.errors import CommerceError
from shared.observability import ecomm_outbound_messages_total
from shared.security.admin import normalize_address

from .channel import ChannelClient, HttpChannelClient

logger = structlog.get_logger(__name__)


@dataclass
class MediaItem:
    url: str
    caption: str = ""


def channel_address(address: str) -> str:
    """Phone numbers become channel chat ids; chat ids pass through unchanged."""
    if "@" in address:
        return address
    return normalize_address(address, settings.DEFAULT_COUNTRY_CODE) + "@c.us"


class NotificationDispatcher:
    """
    Sends text and media over an injected channel client.
    Channel failures are logged and counted, never raised to the caller;
    send_text reports success as a bool for callers that need to know.
    """

    def __init__(self, client: ChannelClient, max_media: int = settings.MAX_MEDIA_PER_REPLY,
                 media_delay: float = settings.MEDIA_SEND_DELAY_SECONDS):
        self.client = client
        self.max_media = max_media
        self.media_delay = media_delay

    async def send_text(self, address: str, text: str) -> bool:
        try:
            await self.client.send_text(channel_address(address), text)
        except CommerceError as e:
            ecomm_outbound_messages_total.labels(kind="text", outcome="failed").inc()
            logger.warning("text_send_failed", address=address, error=e.message)
            return False
        ecomm_outbound_messages_total.labels(kind="text", outcome="success").inc()
        return True

    async def send_media(self, address: str, media: Iterable[MediaItem]) -> int:
        """Send up to max_media images, pausing between sends. Returns the number delivered."""
        sent = 0
        for index, item in enumerate(list(media)[: self.max_media]):
            if not item.url.startswith(("http://", "https://")):
                logger.warning("media_skipped_relative_url", address=address, url=item.url)
                ecomm_outbound_messages_total.labels(kind="media", outcome="skipped").inc()
                continue
            if index and self.media_delay:
                await asyncio.sleep(self.media_delay)
            try:
                await self.client.send_media(channel_address(address), item.url, item.caption)
            except CommerceError as e:
                # One broken image must not stop the rest
                ecomm_outbound_messages_total.labels(kind="media", outcome="failed").inc()
                logger.warning("media_send_failed", address=address, url=item.url, error=e.message)
                continue
            ecomm_outbound_messages_total.labels(kind="media", outcome="success").inc()
            sent += 1
        return sent


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; the HTTP channel client is created on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(HttpChannelClient())
    return _dispatcher
