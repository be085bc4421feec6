"""
Two-pass reply composition.

Round 1 asks the model for a reply, possibly containing function tags.
If it has none, that text is the reply. Otherwise every tag is executed in
order, the results are folded into a context prompt and the model is asked
once more. The round-two text is final and is never parsed for tags, so a
message costs at most two generation calls.
"""
from dataclasses import dataclass, field
from typing import Optional

import structlog

from services.conversation_service.history import HistoryEntry, HistoryWindow
from services.notification_service.dispatcher import MediaItem

from .generation import GenerationService
from .media import extract_media
from .parser import parse_function_calls
from .prompts import result_context, system_prompt
from .registry import CallContext, FunctionRegistry, FunctionResult
from .sanitizer import sanitize_reply

logger = structlog.get_logger(__name__)


@dataclass
class ComposedReply:
    text: str
    media: list[MediaItem] = field(default_factory=list)
    results: list[FunctionResult] = field(default_factory=list)
    rounds: int = 1


class ResponseComposer:
    def __init__(self, registry: FunctionRegistry, generator: GenerationService):
        self.registry = registry
        self.generator = generator

    async def compose(self, ctx: CallContext, message: str, history: Optional[HistoryWindow] = None,
                      base_prompt: Optional[str] = None) -> ComposedReply:
        """Raises ExternalUnavailableError if either generation round fails."""
        entries = history.entries() if history is not None else []
        prompt = system_prompt(base_prompt, self.registry.specs(include_admin=await ctx.is_admin()))

        first = await self.generator.generate(prompt, message, entries, round_label="1")
        calls = parse_function_calls(first)
        if not calls:
            return self._finish(first, [], rounds=1)

        results = []
        for call in calls:
            # Textual order; failures do not stop later calls
            results.append(await self.registry.execute(ctx, call.name, call.kwargs))
        logger.info("functions_executed", caller=ctx.caller, count=len(results),
                    functions=[r.name for r in results])

        followup = [*entries, HistoryEntry("user", message)]
        second = await self.generator.generate(
            prompt, result_context(results, message), followup, round_label="2"
        )
        return self._finish(second, results, rounds=2)

    @staticmethod
    def _finish(text: str, results: list[FunctionResult], rounds: int) -> ComposedReply:
        clean = sanitize_reply(text)
        return ComposedReply(text=clean, media=extract_media(clean), results=results, rounds=rounds)
