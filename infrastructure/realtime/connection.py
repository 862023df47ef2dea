"""One client's chat session.

A connection bridges a duplex transport to the hub with two independent
loops:

- the inbound loop decodes client frames, turns them into chat messages
  and submits them to the hub; any read or decode failure ends the session
  and unregisters it from the hub;
- the outbound loop drains the mailbox the hub fills, writes each message
  under a deadline and sends a keepalive ping on a fixed period; it stops
  with a close frame once the hub closes the mailbox.

The loops share no mutable state. Liveness is coordinated through the
transport: every inbound frame (pongs included) refreshes the read deadline.
"""
from __future__ import annotations

import asyncio
import contextlib
import json
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect

from application.dto import ChatMessageDTO, ChatMessageRequest
from application.ports.realtime import ChatTransport, Envelope
from core.config import ChatSettings, settings
from core.logging_config import get_logger
from domain.chat.entity import ChatMessage
from domain.common.exceptions import InvalidChatMessageException
from infrastructure.realtime.mailbox import Mailbox, MailboxClosed

if TYPE_CHECKING:  # pragma: no cover
    from infrastructure.realtime.hub import ChatHub


logger = get_logger(__name__)

# 1000 normal, 1001 going away, 1005 no status, 1006 abnormal
EXPECTED_CLOSE_CODES = frozenset({1000, 1001, 1005, 1006})
KEEPALIVE_FRAME_TYPES = frozenset({"ping", "pong"})

CLOSE_NORMAL = 1000
CLOSE_INTERNAL_ERROR = 1011


class ChatConnection:
    """A registered chat client: identity, mailbox and transport."""

    def __init__(
        self,
        hub: "ChatHub",
        transport: ChatTransport,
        user_id: str,
        options: Optional[ChatSettings] = None,
    ) -> None:
        self._hub = hub
        self._transport = transport
        self.user_id = user_id
        self._opts = options or settings.chat
        self.mailbox: Mailbox[ChatMessage] = Mailbox(self._opts.send_queue_max)

    # -------------------- inbound --------------------

    async def read_loop(self) -> None:
        """Read frames until the first failure, then unregister from the hub."""
        try:
            while True:
                raw = await asyncio.wait_for(
                    self._transport.receive_text(), timeout=self._opts.pong_wait_s
                )
                message = self.decode_frame(raw)
                if message is None:
                    continue
                await self._hub.broadcast(message)
        except asyncio.TimeoutError:
            logger.info("chat_read_deadline_exceeded", user_id=self.user_id)
        except WebSocketDisconnect as exc:
            if exc.code in EXPECTED_CLOSE_CODES:
                logger.info("chat_client_disconnected", user_id=self.user_id, code=exc.code)
            else:
                logger.warning("chat_client_closed_unexpectedly", user_id=self.user_id, code=exc.code)
        except InvalidChatMessageException as exc:
            logger.warning("chat_frame_rejected", user_id=self.user_id, reason=exc.details["reason"])
        except Exception as exc:
            logger.warning("chat_read_failed", user_id=self.user_id, error=str(exc))
        finally:
            await self._hub.unregister(self)

    def decode_frame(self, raw: str) -> Optional[ChatMessage]:
        """Decode one inbound frame.

        Returns ``None`` for keepalive frames. Raises
        ``InvalidChatMessageException`` for anything that is not a valid
        ``{"text": ...}`` request.
        """
        if len(raw.encode("utf-8")) > self._opts.max_message_bytes:
            raise InvalidChatMessageException("frame too large")
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise InvalidChatMessageException("malformed json") from exc

        if isinstance(payload, dict) and payload.get("type") in KEEPALIVE_FRAME_TYPES:
            return None

        try:
            request = ChatMessageRequest.model_validate(payload)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            raise InvalidChatMessageException(first.get("msg", "invalid payload")) from exc
        return ChatMessage.create(self.user_id, request.text)

    # -------------------- outbound --------------------

    async def write_loop(self) -> None:
        """Drain the mailbox to the transport, pinging on a fixed period."""
        loop = asyncio.get_running_loop()
        next_ping = loop.time() + self._opts.ping_period_s
        try:
            while True:
                timeout = max(0.0, next_ping - loop.time())
                try:
                    message = await asyncio.wait_for(self.mailbox.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    await self._write(Envelope(type="ping"))
                    next_ping = loop.time() + self._opts.ping_period_s
                    continue
                except MailboxClosed:
                    await self._close(CLOSE_NORMAL)
                    return
                await self._write(self.to_envelope(message))
        except Exception as exc:
            logger.info("chat_write_failed", user_id=self.user_id, error=str(exc) or type(exc).__name__)
            await self._close(CLOSE_INTERNAL_ERROR)

    @staticmethod
    def to_envelope(message: ChatMessage) -> Envelope:
        return Envelope(
            type="message",
            data=ChatMessageDTO.model_validate(message).model_dump(mode="json"),
        )

    async def _write(self, envelope: Envelope) -> None:
        await asyncio.wait_for(
            self._transport.send_text(envelope.model_dump_json()),
            timeout=self._opts.write_wait_s,
        )

    async def _close(self, code: int) -> None:
        try:
            await asyncio.wait_for(self._transport.close(code=code), timeout=self._opts.write_wait_s)
        except Exception as exc:
            # already closed by the peer or the other loop
            logger.debug("chat_transport_close_failed", user_id=self.user_id, error=str(exc))

    # -------------------- lifecycle --------------------

    async def serve(self) -> None:
        """Run both loops until the session ends.

        The inbound loop runs in the foreground; once it has unregistered the
        connection the hub closes the mailbox and the outbound loop finishes on
        its own. It is cancelled if it has not done so within the write deadline.
        """
        writer = asyncio.create_task(self.write_loop(), name=f"chat-writer-{self.user_id}")
        try:
            await self.read_loop()
        finally:
            done, _ = await asyncio.wait({writer}, timeout=self._opts.write_wait_s)
            if not done:
                writer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await writer


async def serve_ws(
    hub: "ChatHub",
    transport: ChatTransport,
    user_id: str,
    options: Optional[ChatSettings] = None,
) -> ChatConnection:
    """Bind an authenticated transport to the hub and run it to completion."""
    conn = ChatConnection(hub, transport, user_id, options)
    await hub.register(conn)
    logger.info("chat_session_started", user_id=user_id)
    try:
        await conn.serve()
    finally:
        logger.info("chat_session_ended", user_id=user_id)
    return conn
