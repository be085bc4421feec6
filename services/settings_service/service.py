from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import NotFoundError

from .models import AutoReply
from .repository import AutoReplyRepository, SettingsRepository
from .schemas import AutoReplyCreate, AutoReplyUpdate

AUTO_REPLY_ENABLED = "auto_reply_enabled"
AI_MODE_ENABLED = "ai_mode_enabled"
AI_FALLBACK_ENABLED = "ai_fallback_enabled"
AI_SYSTEM_PROMPT = "ai_system_prompt"
AI_CONVERSATION_HISTORY = "ai_conversation_history"
ADMIN_PHONE_NUMBER = "admin_phone_number"
DELIVERY_FEE = "delivery_fee"
FREE_DELIVERY_ABOVE = "free_delivery_above"


def default_settings() -> dict[str, str]:
    return {
        AUTO_REPLY_ENABLED: "true",
        AI_MODE_ENABLED: "false",
        AI_FALLBACK_ENABLED: "true",
        AI_CONVERSATION_HISTORY: str(settings.HISTORY_MAX_MESSAGES),
        ADMIN_PHONE_NUMBER: settings.ADMIN_PHONE_NUMBER,
        DELIVERY_FEE: str(settings.DELIVERY_FEE),
        FREE_DELIVERY_ABOVE: str(settings.FREE_DELIVERY_ABOVE),
    }


DEFAULT_AUTO_REPLIES = {
    "hello": f"Hello! Welcome to {settings.STORE_NAME}. How can I help you today? 👋",
    "hi": f"Hi there! Welcome to {settings.STORE_NAME}. How can I assist you? 😊",
    "hours": "Our business hours are:\nMonday - Friday: 8:00 AM - 5:00 PM\nSaturday: 9:00 AM - 2:00 PM\nSunday: Closed",
    "help": "I can help you with:\n• Product information\n• Pricing\n• Your cart and orders\n\nJust type your question!",
}


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


def _as_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


class SettingsService:

    @staticmethod
    async def seed_defaults(db: AsyncSession):
        await SettingsRepository.insert_missing(db, default_settings())
        await AutoReplyRepository.insert_missing(db, DEFAULT_AUTO_REPLIES)

    @staticmethod
    async def get_all(db: AsyncSession) -> dict[str, str]:
        return {**default_settings(), **await SettingsRepository.get_all(db)}

    @staticmethod
    async def update(db: AsyncSession, values: dict[str, str]):
        for key, value in values.items():
            await SettingsRepository.set_value(db, key, str(value))

    @staticmethod
    async def _get(db: AsyncSession, key: str) -> Optional[str]:
        value = await SettingsRepository.get_value(db, key)
        return value if value is not None else default_settings().get(key)

    @staticmethod
    async def auto_reply_enabled(db: AsyncSession) -> bool:
        return _as_bool(await SettingsService._get(db, AUTO_REPLY_ENABLED), True)

    @staticmethod
    async def ai_mode_enabled(db: AsyncSession) -> bool:
        return _as_bool(await SettingsService._get(db, AI_MODE_ENABLED), False)

    @staticmethod
    async def ai_fallback_enabled(db: AsyncSession) -> bool:
        return _as_bool(await SettingsService._get(db, AI_FALLBACK_ENABLED), True)

    @staticmethod
    async def system_prompt(db: AsyncSession) -> Optional[str]:
        return await SettingsService._get(db, AI_SYSTEM_PROMPT) or None

    @staticmethod
    async def history_length(db: AsyncSession) -> int:
        value = await SettingsService._get(db, AI_CONVERSATION_HISTORY)
        return max(0, int(_as_float(value, settings.HISTORY_MAX_MESSAGES)))

    @staticmethod
    async def admin_address(db: AsyncSession) -> str:
        return await SettingsService._get(db, ADMIN_PHONE_NUMBER) or ""

    @staticmethod
    async def delivery_pricing(db: AsyncSession) -> tuple[float, float]:
        """(flat delivery fee, subtotal at or above which delivery is free)"""
        fee = _as_float(await SettingsService._get(db, DELIVERY_FEE), settings.DELIVERY_FEE)
        threshold = _as_float(await SettingsService._get(db, FREE_DELIVERY_ABOVE), settings.FREE_DELIVERY_ABOVE)
        return fee, threshold


class KeywordService:

    @staticmethod
    async def lookup(db: AsyncSession, text: str) -> Optional[str]:
        """Exact match of the trimmed, lowercased message against the keyword table."""
        keyword = (text or "").strip().lower()
        if not keyword:
            return None
        reply = await AutoReplyRepository.find_active(db, keyword)
        return reply.response if reply else None

    @staticmethod
    async def list_replies(db: AsyncSession):
        return await AutoReplyRepository.list_all(db)

    @staticmethod
    async def create_reply(db: AsyncSession, data: AutoReplyCreate) -> AutoReply:
        return await AutoReplyRepository.create(
            db, AutoReply(keyword=data.keyword, response=data.response, is_active=True)
        )

    @staticmethod
    async def update_reply(db: AsyncSession, reply_id: int, data: AutoReplyUpdate) -> AutoReply:
        reply = await AutoReplyRepository.get(db, reply_id)
        if not reply:
            raise NotFoundError(f"Auto-reply {reply_id} not found.")
        for field, value in data.model_dump(exclude_none=True).items():
            setattr(reply, field, value)
        return await AutoReplyRepository.save(db, reply)

    @staticmethod
    async def delete_reply(db: AsyncSession, reply_id: int):
        if not await AutoReplyRepository.delete(db, reply_id):
            raise NotFoundError(f"Auto-reply {reply_id} not found.")
