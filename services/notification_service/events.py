"""In-process fan-out of new-order events to dashboard listeners."""
import asyncio

import structlog

logger = structlog.get_logger(__name__)


class OrderEventBus:
    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._subscribers: set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        self._subscribers.discard(queue)

    def publish(self, event) -> int:
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                # A stalled listener drops events rather than blocking checkout
                logger.warning("order_event_dropped", queue_size=queue.qsize())
        return delivered


order_events = OrderEventBus()
