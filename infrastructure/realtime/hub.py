"""In-process chat hub.

The hub is the single owner of the live connection set. Registration,
deregistration and broadcast are submitted to one FIFO intake and applied
by a single coordination task, so membership changes and fan-out are
totally ordered and never race. No lock guards the membership set because
nothing outside the coordination task touches it.

Broadcast is persist-then-fan-out: a message that fails to persist is
dropped for everyone. Delivery to each connection is a non-blocking put;
a connection whose mailbox is full is disconnected instead of slowing
everyone else down.

At most ``intake_max`` broadcasts may be pending at once; further producers
wait for a slot, so a slow store holds back the read loops instead of
buffering without bound. Register and unregister take no slot.
"""
from __future__ import annotations

import asyncio
import enum
from typing import TYPE_CHECKING, Dict, Optional

from application.ports.chat import ChatMessageStore
from domain.chat.entity import ChatMessage
from infrastructure.realtime.mailbox import MailboxClosed
from core.logging_config import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from infrastructure.realtime.connection import ChatConnection


logger = get_logger(__name__)


class _Op(enum.Enum):
    REGISTER = "register"
    UNREGISTER = "unregister"
    BROADCAST = "broadcast"
    STOP = "stop"


class ChatHub:
    """Serialized fan-out coordinator for chat connections."""

    def __init__(self, store: ChatMessageStore, *, history_limit: int = 100, intake_max: int = 64) -> None:
        if intake_max < 1:
            raise ValueError("intake_max must be positive")
        self._store = store
        self._history_limit = history_limit
        # one slot per pending broadcast, released once the hub has applied it
        self._broadcast_slots = asyncio.Semaphore(intake_max)
        # connection -> alive; only read/written by the coordination task
        self._clients: Dict["ChatConnection", bool] = {}
        self._intake: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._accepting = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("chat hub already started")
        self._accepting = True
        self._task = asyncio.create_task(self._run(), name="chat-hub")
        logger.info("chat_hub_started", history_limit=self._history_limit)

    async def shutdown(self) -> None:
        """Stop accepting commands, apply the pending ones, then close every connection."""
        if self._task is None or not self._accepting:
            return
        self._accepting = False
        await self._intake.put((_Op.STOP, None))
        await self._task
        # anything submitted concurrently with the stop command
        while not self._intake.empty():
            op, payload = self._intake.get_nowait()
            if op is _Op.REGISTER:
                payload.mailbox.close()
            elif op is _Op.BROADCAST:
                self._broadcast_slots.release()
            self._intake.task_done()
        logger.info("chat_hub_stopped")

    # -------------------- intake --------------------

    async def register(self, conn: "ChatConnection") -> None:
        if not self._accepting:
            # hub is gone; make the connection wind down on its own
            conn.mailbox.close()
            return
        await self._intake.put((_Op.REGISTER, conn))

    async def unregister(self, conn: "ChatConnection") -> None:
        if not self._accepting:
            return
        await self._intake.put((_Op.UNREGISTER, conn))

    async def broadcast(self, message: ChatMessage) -> None:
        if not self._accepting:
            logger.warning("chat_broadcast_rejected", message_id=message.id, reason="hub_stopped")
            return
        await self._broadcast_slots.acquire()
        if not self._accepting:
            # stopped while waiting for a slot
            self._broadcast_slots.release()
            logger.warning("chat_broadcast_rejected", message_id=message.id, reason="hub_stopped")
            return
        await self._intake.put((_Op.BROADCAST, message))

    async def wait_idle(self) -> None:
        """Wait until every command submitted so far has been applied."""
        if not self.running:
            return
        await self._intake.join()

    # -------------------- coordination loop --------------------

    async def _run(self) -> None:
        while True:
            op, payload = await self._intake.get()
            try:
                if op is _Op.STOP:
                    self._close_all()
                    return
                if op is _Op.REGISTER:
                    await self._on_register(payload)
                elif op is _Op.UNREGISTER:
                    self._on_unregister(payload)
                elif op is _Op.BROADCAST:
                    try:
                        await self._on_broadcast(payload)
                    finally:
                        self._broadcast_slots.release()
            except Exception as exc:
                # one bad command must not take the hub down
                logger.error("chat_hub_command_failed", op=op.value, error=str(exc), exc_info=True)
            finally:
                self._intake.task_done()

    async def _on_register(self, conn: "ChatConnection") -> None:
        if conn in self._clients or conn.mailbox.closed:
            return
        self._clients[conn] = True
        logger.info("chat_connection_registered", user_id=conn.user_id, connections=len(self._clients))

        try:
            history = await self._store.recent(self._history_limit, 0)
        except Exception as exc:
            logger.warning("chat_history_fetch_failed", user_id=conn.user_id, error=str(exc))
            return

        # store returns newest first; replay oldest first
        for message in reversed(history):
            try:
                conn.mailbox.put_nowait(message)
            except (asyncio.QueueFull, MailboxClosed):
                logger.warning("chat_history_truncated", user_id=conn.user_id)
                break

    def _on_unregister(self, conn: "ChatConnection") -> None:
        if conn not in self._clients:
            return
        self._drop(conn)
        logger.info("chat_connection_unregistered", user_id=conn.user_id, connections=len(self._clients))

    async def _on_broadcast(self, message: ChatMessage) -> None:
        try:
            await self._store.save(message)
        except Exception as exc:
            logger.error(
                "chat_broadcast_dropped",
                message_id=message.id,
                user_id=message.user_id,
                error=str(exc),
            )
            return

        delivered = 0
        for conn in list(self._clients):
            try:
                conn.mailbox.put_nowait(message)
                delivered += 1
            except (asyncio.QueueFull, MailboxClosed):
                self._drop(conn)
                logger.warning("chat_slow_consumer_dropped", user_id=conn.user_id)
        logger.debug("chat_message_broadcast", message_id=message.id, delivered=delivered)

    def _drop(self, conn: "ChatConnection") -> None:
        del self._clients[conn]
        conn.mailbox.close()

    def _close_all(self) -> None:
        for conn in list(self._clients):
            self._drop(conn)
        logger.info("chat_hub_connections_closed")

