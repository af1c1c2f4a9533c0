"""
User-facing notifications.

Simple in-process pub/sub bus for messages a player should see (lookup
failures, oversized searches, progress labels). Subscribers get their own
asyncio queue; the most recent notifications are also kept for polling.
"""
import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    ts: float = field(default_factory=time.time)


class NotificationCenter:

    def __init__(self, maxlen: int = 200) -> None:
        self._subscribers: List[asyncio.Queue] = []
        self._lock = asyncio.Lock()
        self.recent: Deque[Notification] = deque(maxlen=maxlen)

    async def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue()
        async with self._lock:
            self._subscribers.append(q)
        return q

    async def unsubscribe(self, q: asyncio.Queue) -> None:
        async with self._lock:
            try:
                self._subscribers.remove(q)
            except ValueError:
                pass

    async def publish(self, level: str, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.recent.append(notification)
        logger.log(logging.ERROR if level == "error" else logging.INFO, f"🔔 {message}")
        async with self._lock:
            for q in list(self._subscribers):
                try:
                    q.put_nowait(notification)
                except asyncio.QueueFull:
                    self._subscribers.remove(q)
        return notification

    async def error(self, message: str) -> Notification:
        return await self.publish("error", message)

    async def info(self, message: str) -> Notification:
        return await self.publish("info", message)

    def errors(self) -> List[Notification]:
        return [n for n in self.recent if n.level == "error"]


# Global singleton
notification_center = NotificationCenter()
