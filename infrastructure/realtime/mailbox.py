"""Bounded per-connection outbound queue with close semantics.

Single producer (the hub) and single consumer (the connection's outbound
loop). After ``close()`` the consumer still drains whatever is buffered and
then receives ``MailboxClosed``.
"""
from __future__ import annotations

import asyncio
from typing import Generic, TypeVar


T = TypeVar("T")

_CLOSED = object()


class MailboxClosed(Exception):
    """Raised by ``get`` once the mailbox is closed and drained, and by puts after close."""


class Mailbox(Generic[T]):
    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError("mailbox capacity must be positive")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def put_nowait(self, item: T) -> None:
        """Enqueue without waiting.

        Raises ``asyncio.QueueFull`` when at capacity and ``MailboxClosed``
        after close.
        """
        if self._closed:
            raise MailboxClosed()
        self._queue.put_nowait(item)

    def close(self) -> None:
        """Idempotent. Wakes a consumer blocked on an empty mailbox."""
        if self._closed:
            return
        self._closed = True
        # A full queue has no waiting consumer; it sees the flag once drained.
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def get(self) -> T:
        if self._closed and self._queue.empty():
            raise MailboxClosed()
        item = await self._queue.get()
        if item is _CLOSED:
            raise MailboxClosed()
        return item

