from services.conversation_service.history import HistoryWindow
from services.conversation_service.service import ConversationService


def test_count_limit_evicts_oldest():
    window = HistoryWindow(max_messages=3, max_bytes=1000)
    for i in range(5):
        window.append("user", f"m{i}")
    assert [e.text for e in window.entries()] == ["m2", "m3", "m4"]
    assert window.total_bytes == 6


def test_byte_limit_evicts_oldest():
    window = HistoryWindow(max_messages=10, max_bytes=10)
    window.append("user", "aaaa")
    window.append("assistant", "bbbb")
    window.append("user", "cccc")
    assert [e.text for e in window.entries()] == ["bbbb", "cccc"]
    assert window.total_bytes <= 10


def test_oversized_message_keeps_its_tail():
    window = HistoryWindow(max_messages=10, max_bytes=5)
    window.append("user", "0123456789")
    assert [e.text for e in window.entries()] == ["56789"]


def test_zero_limits_hold_nothing():
    assert len(HistoryWindow(max_messages=0, max_bytes=100).entries()) == 0
    window = HistoryWindow(max_messages=5, max_bytes=0)
    window.append("user", "hi")
    assert len(window) == 0


async def test_history_reads_latest_messages_in_order(db):
    chat = "94771234567@c.us"
    for i in range(4):
        await ConversationService.log_inbound(db, chat, f"question {i}")
        await ConversationService.log_reply(db, chat, f"answer {i}")
    await ConversationService.log_inbound(db, "other@c.us", "not mine")

    window = await ConversationService.history(db, chat, max_messages=3)
    assert [(e.role, e.text) for e in window.entries()] == [
        ("assistant", "answer 2"),
        ("user", "question 3"),
        ("assistant", "answer 3"),
    ]
