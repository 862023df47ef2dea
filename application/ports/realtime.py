"""
Realtime port and message DTOs (contracts-first).

This module defines the wire envelope and the transport protocol the
chat hub and its connections depend on, so the application layer stays
decoupled from the concrete WebSocket implementation.
"""
from __future__ import annotations

from typing import Any, Protocol
from pydantic import BaseModel, Field
from datetime import datetime, timezone


def _utc_now_z() -> str:
    ts = datetime.now(timezone.utc)
    s = ts.isoformat()
    return s.replace("+00:00", "Z")


class Envelope(BaseModel):
    """Outbound WS frame.

    Fields:
      - type: message | ping
      - data: payload (JSON-serializable)
      - ts: server-generated UTC timestamp (ISO8601 with Z)
    """

    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    ts: str = Field(default_factory=_utc_now_z)


class ChatTransport(Protocol):
    """Minimal duplex text transport.

    Starlette's ``WebSocket`` satisfies this protocol as-is; tests use
    in-memory fakes.
    """

    async def receive_text(self) -> str: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


__all__ = ["Envelope", "ChatTransport"]
