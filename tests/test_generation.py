import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from shared.errors import ExternalUnavailableError
from services.conversation_service.history import HistoryEntry
from services.orchestrator.generation import GenerationService


class FakeLLM:
    def __init__(self, response=None, delay=0.0, error=None):
        self.response = response
        self.delay = delay
        self.error = error
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response


def test_build_messages_maps_roles():
    history = [HistoryEntry("user", "hi"), HistoryEntry("assistant", "hello")]
    messages = GenerationService.build_messages("sys", "what's new?", history)
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert messages[-1].content == "what's new?"


async def test_generate_returns_text():
    llm = FakeLLM(AIMessage(content="Hi there", usage_metadata={
        "input_tokens": 10, "output_tokens": 3, "total_tokens": 13,
    }))
    service = GenerationService(llm=llm, model="test-model", timeout=1)
    assert await service.generate("sys", "hi") == "Hi there"
    assert len(llm.messages) == 2


async def test_content_blocks_are_joined():
    llm = FakeLLM(AIMessage(content=[{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}]))
    assert await GenerationService(llm=llm, model="m").generate("sys", "hi") == "Hello world"


async def test_timeout_is_reported_as_unavailable():
    service = GenerationService(llm=FakeLLM(AIMessage(content="late"), delay=1), model="m", timeout=0.01)
    with pytest.raises(ExternalUnavailableError, match="timed out"):
        await service.generate("sys", "hi")


async def test_transport_error_is_reported_as_unavailable():
    service = GenerationService(llm=FakeLLM(error=ConnectionError("refused")), model="m")
    with pytest.raises(ExternalUnavailableError):
        await service.generate("sys", "hi")
