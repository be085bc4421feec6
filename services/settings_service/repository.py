from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AutoReply, Setting


class SettingsRepository:

    @staticmethod
    async def get_value(db: AsyncSession, key: str) -> Optional[str]:
        result = await db.execute(select(Setting.value).where(Setting.key == key))
        return result.scalars().first()

    @staticmethod
    async def get_all(db: AsyncSession) -> dict[str, str]:
        result = await db.execute(select(Setting))
        return {row.key: row.value for row in result.scalars().all()}

    @staticmethod
    async def set_value(db: AsyncSession, key: str, value: str):
        setting = await db.get(Setting, key)
        if setting:
            setting.value = value
        else:
            db.add(Setting(key=key, value=value))
        await db.commit()

    @staticmethod
    async def insert_missing(db: AsyncSession, defaults: dict[str, str]):
        existing = set((await SettingsRepository.get_all(db)).keys())
        for key, value in defaults.items():
            if key not in existing:
                db.add(Setting(key=key, value=value))
        await db.commit()


class AutoReplyRepository:

    @staticmethod
    async def find_active(db: AsyncSession, keyword: str) -> Optional[AutoReply]:
        result = await db.execute(
            select(AutoReply).where(AutoReply.keyword == keyword, AutoReply.is_active.is_(True))
        )
        return result.scalars().first()

    @staticmethod
    async def list_all(db: AsyncSession):
        result = await db.execute(select(AutoReply).order_by(AutoReply.keyword))
        return result.scalars().all()

    @staticmethod
    async def get(db: AsyncSession, reply_id: int) -> Optional[AutoReply]:
        return await db.get(AutoReply, reply_id)

    @staticmethod
    async def create(db: AsyncSession, reply: AutoReply):
        db.add(reply)
        await db.commit()
        await db.refresh(reply)
        return reply

    @staticmethod
    async def save(db: AsyncSession, reply: AutoReply):
        await db.commit()
        await db.refresh(reply)
        return reply

    @staticmethod
    async def delete(db: AsyncSession, reply_id: int) -> bool:
        result = await db.execute(delete(AutoReply).where(AutoReply.id == reply_id))
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def insert_missing(db: AsyncSession, replies: dict[str, str]):
        result = await db.execute(select(AutoReply.keyword))
        existing = set(result.scalars().all())
        for keyword, response in replies.items():
            if keyword not in existing:
                db.add(AutoReply(keyword=keyword, response=response, is_active=True))
        await db.commit()
