import asyncio
from typing import Iterable, Optional

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from shared.config import settings
from shared.errors import ExternalUnavailableError
from shared.observability import ecomm_generation_requests_total, ecomm_llm_tokens_total
from services.conversation_service.history import HistoryEntry

logger = structlog.get_logger(__name__)


class GenerationService:
    """
    Thin async wrapper around the chat model. Output is plain text and is
    only ever parsed, never executed. Timeouts and transport errors surface
    as ExternalUnavailableError so callers can fall back to keyword mode.
    """

    def __init__(self, llm=None, model: str = settings.OPENAI_MODEL,
                 timeout: float = settings.GENERATION_TIMEOUT_SECONDS):
        self.model = model
        self.timeout = timeout
        self.llm = llm or ChatOpenAI(model=model, temperature=0)

    @staticmethod
    def build_messages(system_prompt: str, message: str,
                       history: Iterable[HistoryEntry] = ()) -> list[BaseMessage]:
        messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
        for entry in history:
            if entry.role == "assistant":
                messages.append(AIMessage(content=entry.text))
            else:
                messages.append(HumanMessage(content=entry.text))
        messages.append(HumanMessage(content=message))
        return messages

    async def generate(self, system_prompt: str, message: str,
                       history: Iterable[HistoryEntry] = (), round_label: str = "1") -> str:
        messages = self.build_messages(system_prompt, message, history)
        try:
            response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            ecomm_generation_requests_total.labels(round=round_label, outcome="timeout").inc()
            logger.warning("generation_timeout", round=round_label, timeout=self.timeout)
            raise ExternalUnavailableError("Generation service timed out.") from e
        except Exception as e:
            ecomm_generation_requests_total.labels(round=round_label, outcome="failed").inc()
            logger.warning("generation_failed", round=round_label, error=str(e))
            raise ExternalUnavailableError(f"Generation service unavailable: {e}") from e

        ecomm_generation_requests_total.labels(round=round_label, outcome="success").inc()
        self._record_usage(response)
        return self._text(response)

    def _record_usage(self, response):
        usage: Optional[dict] = getattr(response, "usage_metadata", None)
        if not usage:
            return
        ecomm_llm_tokens_total.labels(model=self.model, type="prompt").inc(usage.get("input_tokens", 0))
        ecomm_llm_tokens_total.labels(model=self.model, type="completion").inc(usage.get("output_tokens", 0))

    @staticmethod
    def _text(response) -> str:
        content = getattr(response, "content", response)
        if isinstance(content, list):
            # Content blocks from multimodal models
            return "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return content or ""
