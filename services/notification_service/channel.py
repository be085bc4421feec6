"""
Outbound side of the messaging channel.

The engine never talks to the channel session directly; it is handed a
ChannelClient. Production uses HttpChannelClient against the gateway that
owns the live channel session, tests pass a recording fake.
"""
from typing import Optional, Protocol

import httpx
import structlog

from shared.config import settings
from shared.errors import ExternalUnavailableError

logger = structlog.get_logger(__name__)


class ChannelClient(Protocol):
    async def send_text(self, address: str, text: str) -> None: ...

    async def send_media(self, address: str, media_url: str, caption: str = "") -> None: ...


class HttpChannelClient:
    def __init__(self, base_url: str = settings.CHANNEL_GATEWAY_URL,
                 token: str = settings.CHANNEL_GATEWAY_TOKEN, timeout: float = 15.0,
                 client: Optional[httpx.AsyncClient] = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def _post(self, path: str, payload: dict):
        try:
            resp = await self._client.post(path, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("channel_send_failed", path=path, error=str(e))
            raise ExternalUnavailableError(f"Messaging channel unavailable: {e}") from e

    async def send_text(self, address: str, text: str) -> None:
        await self._post("/messages", {"to": address, "text": text})

    async def send_media(self, address: str, media_url: str, caption: str = "") -> None:
        await self._post("/media", {"to": address, "url": media_url, "caption": caption})

    async def aclose(self):
        await self._client.aclose()
