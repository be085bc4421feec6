from dataclasses import dataclass, field
from typing import Optional

import structlog

from shared.errors import ExternalUnavailableError
from services.conversation_service.history import HistoryWindow
from services.notification_service.dispatcher import MediaItem
from services.settings_service.service import KeywordService, SettingsService

from .composer import ResponseComposer
from .registry import CallContext

logger = structlog.get_logger(__name__)

KEYWORD = "keyword"
AI = "ai"
FALLBACK = "fallback"


@dataclass
class Reply:
    text: str
    mode: str
    media: list[MediaItem] = field(default_factory=list)


class ModeRouter:
    """Chooses between the keyword table and the composer for one message."""

    def __init__(self, composer: ResponseComposer):
        self.composer = composer

    async def route(self, ctx: CallContext, text: str,
                    history: Optional[HistoryWindow] = None) -> Optional[Reply]:
        if not await SettingsService.ai_mode_enabled(ctx.db):
            return await self._keyword(ctx, text, KEYWORD)

        try:
            composed = await self.composer.compose(
                ctx, text, history, base_prompt=await SettingsService.system_prompt(ctx.db)
            )
        except ExternalUnavailableError as e:
            if await SettingsService.ai_fallback_enabled(ctx.db):
                logger.warning("generation_unavailable_fallback", caller=ctx.caller, error=e.message)
                return await self._keyword(ctx, text, FALLBACK)
            logger.warning("generation_unavailable_no_reply", caller=ctx.caller, error=e.message)
            return None

        return Reply(text=composed.text, mode=AI, media=composed.media)

    @staticmethod
    async def _keyword(ctx: CallContext, text: str, mode: str) -> Optional[Reply]:
        response = await KeywordService.lookup(ctx.db, text)
        if response is None:
            return None
        return Reply(text=response, mode=mode)
