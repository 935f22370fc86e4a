"""Broadcast event streams without replay.

Each emitted value reaches whoever is subscribed at emission time; late
subscribers never see earlier values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[T], Any]


class EventStream(Generic[T]):
    """In-process multi-subscriber event stream.

    Callbacks run synchronously inside ``emit``. A callback returning a
    coroutine has it scheduled on the running loop. Callback failures are
    logged and do not reach the producer or other subscribers.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._subscribers: list[Callback[T]] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, callback: Callback[T]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Callback[T]) -> None:
        self._subscribers = [cb for cb in self._subscribers if cb is not callback]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, value: T) -> None:
        """Deliver ``value`` to the current subscribers."""
        for cb in list(self._subscribers):
            try:
                result = cb(value)
                if asyncio.iscoroutine(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(self._task_done)
            except Exception:
                logger.exception(f"Subscriber error on stream {self.name}")

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Subscriber error on stream {self.name}", exc_info=task.exception()
            )

    def next(self) -> asyncio.Future[T]:
        """Future resolved by the next emission on this stream.

        Must be called with a running event loop.
        """
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

        def _resolve(value: T) -> None:
            if not future.done():
                future.set_result(value)

        self.subscribe(_resolve)
        future.add_done_callback(lambda _: self.unsubscribe(_resolve))
        return future

    def __repr__(self) -> str:
        return f"EventStream({self.name!r}, subscribers={self.subscriber_count})"
