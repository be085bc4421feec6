from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import MessageLog


class MessageRepository:

    @staticmethod
    async def add(db: AsyncSession, message: MessageLog) -> MessageLog:
        db.add(message)
        await db.commit()
        return message

    @staticmethod
    async def latest(db: AsyncSession, chat_id: str, limit: int):
        """The newest `limit` messages of a chat, oldest first."""
        result = await db.execute(
            select(MessageLog)
            .where(MessageLog.chat_id == chat_id)
            .order_by(MessageLog.created_at.desc(), MessageLog.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))
