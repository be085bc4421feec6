"""
Bounded conversation history handed to the generation service.

The window holds at most `max_messages` entries and at most `max_bytes` of
UTF-8 text. When either limit is exceeded the oldest entries are evicted
first, so the newest context always survives.
"""
from collections import deque
from dataclasses import dataclass
from typing import Iterable

from shared.config import settings


@dataclass(frozen=True)
class HistoryEntry:
    role: str  # "user" or "assistant"
    text: str

    @property
    def size(self) -> int:
        return len(self.text.encode("utf-8"))


class HistoryWindow:
    def __init__(self, max_messages: int = settings.HISTORY_MAX_MESSAGES,
                 max_bytes: int = settings.HISTORY_MAX_BYTES):
        self.max_messages = max(0, max_messages)
        self.max_bytes = max(0, max_bytes)
        self._entries: deque[HistoryEntry] = deque(maxlen=self.max_messages)
        self._bytes = 0

    def append(self, role: str, text: str):
        if self.max_messages == 0 or self.max_bytes == 0:
            return
        entry = HistoryEntry(role, text or "")
        if entry.size > self.max_bytes:
            # Keep the tail of an oversized message rather than dropping it outright
            tail = entry.text.encode("utf-8")[-self.max_bytes:].decode("utf-8", errors="ignore")
            entry = HistoryEntry(role, tail)
        if len(self._entries) == self.max_messages:
            self._bytes -= self._entries[0].size
        self._entries.append(entry)
        self._bytes += entry.size
        while self._bytes > self.max_bytes and self._entries:
            self._bytes -= self._entries.popleft().size

    def extend(self, entries: Iterable[HistoryEntry]):
        for entry in entries:
            self.append(entry.role, entry.text)

    @property
    def total_bytes(self) -> int:
        return self._bytes

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self):
        return len(self._entries)
