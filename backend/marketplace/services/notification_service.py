"""
Notification Service
Best-effort, real-time event fan-out addressed by user id.

The booking and review services only depend on the ``Notifier`` interface:

    notifier.publish(user_id, "bookingUpdate", {...})

Delivery is at-most-once per call with no retry and no persistence. A user
with no live connection simply misses the event. ``publish`` never raises
and never blocks on the network, so a failed delivery can't fail or roll
back the operation that triggered it.

``ConnectionManager`` is the in-process transport used by the WebSocket
endpoint: each connected client gets its own asyncio queue inside a
per-user "room". Publishing can happen from FastAPI's worker threads (sync
endpoints), so messages are handed to the owning event loop with
``call_soon_threadsafe``.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
from uuid import UUID

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Publish capability injected into the service layer."""

    @abstractmethod
    def publish(self, user_id: UUID, event: str, payload: Dict[str, Any]) -> None:
        """Send ``event`` to every live session of ``user_id``. Must not raise."""


class NullNotifier(Notifier):
    """Drops every event. Used by scripts and background jobs."""

    def publish(self, user_id: UUID, event: str, payload: Dict[str, Any]) -> None:
        logger.debug(f"[Notify] Dropped {event} for user {user_id}")


def safe_publish(notifier: Notifier, user_id: UUID, event: str, payload: Dict[str, Any]) -> None:
    """
    Publish and swallow any delivery failure.

    Notifier implementations are expected not to raise, but the service
    layer calls through this helper so a misbehaving transport can never
    surface as an operation error.
    """
    try:
        notifier.publish(user_id, event, payload)
    except Exception as e:
        logger.warning(f"[Notify] Delivery of {event} to user {user_id} failed: {e}")


class Subscription:
    """One live client connection: a queue bound to the loop that reads it."""

    def __init__(self, user_id: UUID, loop: asyncio.AbstractEventLoop, max_queue: int = 100):
        self.user_id = user_id
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)

    def offer(self, message: Dict[str, Any]) -> None:
        """Enqueue from the owning loop; a full queue drops the message."""
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"[Notify] Queue full for user {self.user_id}, dropping {message.get('event')}")

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class ConnectionManager(Notifier):
    """
    Per-user rooms of live subscriptions.

    Example:
        subscription = manager.subscribe(user.id)
        try:
            while True:
                message = await subscription.get()
                await websocket.send_json(message)
        finally:
            manager.unsubscribe(subscription)
    """

    def __init__(self):
        self._rooms: Dict[UUID, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, user_id: UUID, loop: asyncio.AbstractEventLoop = None) -> Subscription:
        """Join the user's room. Must be called from the loop that will read the queue."""
        subscription = Subscription(user_id, loop or asyncio.get_running_loop())
        with self._lock:
            self._rooms[user_id].append(subscription)
        logger.info(f"[Notify] User {user_id} connected ({self.connection_count(user_id)} sessions)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            room = self._rooms.get(subscription.user_id, [])
            if subscription in room:
                room.remove(subscription)
            if not room:
                self._rooms.pop(subscription.user_id, None)
        logger.info(f"[Notify] User {subscription.user_id} disconnected")

    def connection_count(self, user_id: UUID) -> int:
        with self._lock:
            return len(self._rooms.get(user_id, []))

    def publish(self, user_id: UUID, event: str, payload: Dict[str, Any]) -> None:
        message = {
            "event": event,
            "payload": payload,
            "sent_at": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            targets: List[Tuple[Subscription, asyncio.AbstractEventLoop]] = [
                (s, s.loop) for s in self._rooms.get(user_id, [])
            ]

        if not targets:
            logger.debug(f"[Notify] No live session for user {user_id}, {event} not delivered")
            return

        for subscription, loop in targets:
            try:
                loop.call_soon_threadsafe(subscription.offer, message)
            except RuntimeError as e:
                # Loop already closed: the client is gone
                logger.warning(f"[Notify] Could not deliver {event} to user {user_id}: {e}")


# Application-wide transport instance
notification_manager = ConnectionManager()
