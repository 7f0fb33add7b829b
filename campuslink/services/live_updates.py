"""
Live Updates - in-process push for chat rooms.

A subscriber registers a queue for one chat room. Writers publish a bare
"changed" signal for the room; each subscription then re-reads the room's
full message list and delivers it. Signals that pile up while a subscriber
is busy collapse into one delivery, so a slow reader sees stale-then-fresh,
never out of order.

publish() may be called from any thread (sync FastAPI routes run in a
threadpool); delivery always happens on the subscriber's event loop. The re-read
itself runs in a worker thread so the loop never blocks on the store.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, Generic, List, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registration:
    """One subscriber's slot in the broker."""

    def __init__(self, channel_id: str, loop: asyncio.AbstractEventLoop):
        self.channel_id = channel_id
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue()

    def notify(self) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, None)


class MessageBroker:
    def __init__(self):
        self._registrations: Dict[str, Set[Registration]] = defaultdict(set)
        self._lock = threading.Lock()

    def register(self, channel_id: str) -> Registration:
        """Must be called from the subscriber's running event loop."""
        registration = Registration(channel_id, asyncio.get_running_loop())
        with self._lock:
            self._registrations[channel_id].add(registration)
        return registration

    def unregister(self, registration: Registration) -> None:
        with self._lock:
            registrations = self._registrations.get(registration.channel_id)
            if registrations is None:
                return
            registrations.discard(registration)
            if not registrations:
                del self._registrations[registration.channel_id]

    def publish(self, channel_id: str) -> None:
        with self._lock:
            registrations = list(self._registrations.get(channel_id, ()))
        for registration in registrations:
            try:
                registration.notify()
            except RuntimeError:
                # Subscriber's loop is gone; nobody is left to deliver to
                logger.warning("Dropping subscription on closed loop for chat %s", channel_id)
                self.unregister(registration)

    def subscriber_count(self, channel_id: str) -> int:
        with self._lock:
            return len(self._registrations.get(channel_id, ()))


class Subscription(Generic[T]):
    """
    Async stream of full snapshots for one chat room.

    Usage:
        async with chat_service.subscribe(chat_id) as subscription:
            async for messages in subscription:
                ...

    The first snapshot is delivered immediately. close() releases the
    broker registration; no snapshot is delivered after it returns.
    """

    def __init__(self, broker: MessageBroker, channel_id: str, loader: Callable[[str], List[T]]):
        self.channel_id = channel_id
        self._broker = broker
        self._loader = loader
        self._registration = broker.register(channel_id)
        self._closed = False
        # Initial snapshot
        self._registration.queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broker.unregister(self._registration)
        # Wake a reader blocked in __anext__
        self._registration.queue.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[T]:
        if self._closed:
            raise StopAsyncIteration
        queue = self._registration.queue
        await queue.get()
        if self._closed:
            raise StopAsyncIteration
        while not queue.empty():
            queue.get_nowait()
        # Blocking store read, kept off the event loop
        snapshot = await asyncio.to_thread(self._loader, self.channel_id)
        if self._closed:
            raise StopAsyncIteration
        return snapshot

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


# Singleton instance
_broker: MessageBroker = None


def get_message_broker() -> MessageBroker:
    global _broker
    if _broker is None:
        _broker = MessageBroker()
    return _broker
