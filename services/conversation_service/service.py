from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings

from .history import HistoryWindow
from .models import MessageLog
from .repository import MessageRepository

BOT_SENDER = "bot"


class ConversationService:

    @staticmethod
    async def log_inbound(db: AsyncSession, chat_id: str, text: str, has_media: bool = False):
        await MessageRepository.add(db, MessageLog(
            chat_id=chat_id, sender=chat_id, body=text or "", from_me=False, has_media=has_media
        ))

    @staticmethod
    async def log_reply(db: AsyncSession, chat_id: str, text: str):
        await MessageRepository.add(db, MessageLog(
            chat_id=chat_id, sender=BOT_SENDER, body=text, from_me=True
        ))

    @staticmethod
    async def history(db: AsyncSession, chat_id: str, max_messages: int,
                      max_bytes: int = settings.HISTORY_MAX_BYTES) -> HistoryWindow:
        window = HistoryWindow(max_messages, max_bytes)
        if max_messages <= 0:
            return window
        for message in await MessageRepository.latest(db, chat_id, max_messages):
            if message.body:
                window.append("assistant" if message.from_me else "user", message.body)
        return window
