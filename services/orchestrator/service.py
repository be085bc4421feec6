import re
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import CommerceError
from services.catalog_service.service import CatalogService
from services.conversation_service.service import ConversationService
from services.notification_service.dispatcher import NotificationDispatcher
from services.notification_service.events import OrderEventBus
from services.settings_service.service import SettingsService

from .mode_router import ModeRouter, Reply
from .registry import CallContext
from .schemas import InboundMessage, InboundResult

logger = structlog.get_logger(__name__)

APOLOGY = "Sorry, something went wrong on our side. Please try again in a moment."
ADMIN_MEDIA = "admin_media"

# Chats the channel can't reply to (newsletters, status broadcasts)
_UNREPLYABLE = ("@lid", "@broadcast", "status@")

_CAPTION_PRODUCT_ID = [
    re.compile(r"product\s*(?:id)?\s*(?:is|:)?\s*(\d+)", re.IGNORECASE),
    re.compile(r"id\s*(?:is|:)?\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*(?:product|image)", re.IGNORECASE),
]


def caption_product_id(caption: str) -> Optional[int]:
    """Product id named in an upload caption ("Product ID 3", "id: 3", "3 image")."""
    for pattern in _CAPTION_PRODUCT_ID:
        match = pattern.search(caption or "")
        if match:
            return int(match.group(1))
    return None


class ChatService:
    def __init__(self, router: ModeRouter, dispatcher: NotificationDispatcher,
                 events: Optional[OrderEventBus] = None):
        self.router = router
        self.dispatcher = dispatcher
        self.events = events

    async def handle_inbound(self, db: AsyncSession, message: InboundMessage) -> InboundResult:
        sender = message.sender.strip()
        if message.from_me or any(marker in sender for marker in _UNREPLYABLE):
            return InboundResult(replied=False)

        ctx = CallContext(db=db, caller=sender, events=self.events)
        log = logger.bind(caller=sender)

        # Window is read before this message is stored so it holds prior turns only
        history = await ConversationService.history(db, sender, await SettingsService.history_length(db))
        await ConversationService.log_inbound(db, sender, message.text, message.has_media)

        if message.has_media and await ctx.is_admin():
            reply = Reply(text=await self._admin_media(db, message), mode=ADMIN_MEDIA)
            return await self._deliver(db, sender, reply)

        if not message.text.strip() or not await SettingsService.auto_reply_enabled(db):
            return InboundResult(replied=False)

        try:
            reply = await self.router.route(ctx, message.text.strip(), history)
        except Exception:
            # Each message is isolated; the customer never sees error detail
            log.exception("inbound_message_failed")
            await db.rollback()
            reply = Reply(text=APOLOGY, mode="error")

        if reply is None:
            log.info("no_reply", text_length=len(message.text))
            return InboundResult(replied=False)
        return await self._deliver(db, sender, reply)

    async def _deliver(self, db: AsyncSession, address: str, reply: Reply) -> InboundResult:
        sent = await self.dispatcher.send_text(address, reply.text)
        media_sent = 0
        if sent and reply.media:
            media_sent = await self.dispatcher.send_media(address, reply.media)
        await ConversationService.log_reply(db, address, reply.text)
        logger.info("reply_sent", caller=address, mode=reply.mode, delivered=sent, media_sent=media_sent)
        return InboundResult(replied=sent, mode=reply.mode, reply=reply.text, media_sent=media_sent)

    @staticmethod
    async def _admin_media(db: AsyncSession, message: InboundMessage) -> str:
        if message.media_mimetype and not message.media_mimetype.startswith("image/"):
            return "⚠️ Only image files are supported for product uploads. Please send a JPG, PNG, or GIF image."
        if not message.media_url:
            return "❌ Failed to process image. Please try again."

        product_id = caption_product_id(message.text)
        if product_id is None:
            return (f"✅ Image uploaded successfully!\n\n📁 Path: {message.media_url}\n\n"
                    "💡 To set this as a product image, send another image with caption:\n"
                    "\"Product ID 3\" or \"Update product 3 image\"")
        try:
            await CatalogService.update_product_image(db, product_id, message.media_url)
        except CommerceError:
            return f"⚠️ Product ID {product_id} not found. Image saved at: {message.media_url}"
        logger.info("product_image_uploaded", product_id=product_id, image_url=message.media_url)
        return f"✅ Product {product_id} image updated successfully!\n\n📁 Image: {message.media_url}"
