"""Replayable single-value stream.

A ``StateFlow`` holds one current value. Every collector receives the
current value as soon as it starts collecting, then every value passed to
``set()`` afterwards, including repeats of the same value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateFlow(Generic[T]):
    """A current value plus a change feed, owned by the event loop thread."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._queues: set[asyncio.Queue[T]] = set()

    @property
    def value(self) -> T:
        return self._value

    @property
    def collector_count(self) -> int:
        return len(self._queues)

    def set(self, value: T) -> None:
        """Replace the current value and deliver it to every collector."""
        self._value = value
        for queue in self._queues:
            queue.put_nowait(value)

    async def collect(self) -> AsyncIterator[T]:
        """Yield the current value, then each subsequent ``set()``."""
        queue: asyncio.Queue[T] = asyncio.Queue()
        queue.put_nowait(self._value)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)
