"""
Chat message store port.

The hub persists and replays messages exclusively through this contract.
"""
from __future__ import annotations

from datetime import timedelta
from typing import List, Protocol

from domain.chat.entity import ChatMessage


class ChatMessageStore(Protocol):
    async def save(self, message: ChatMessage) -> None:
        """Persist a message. Raises on failure."""
        ...

    async def recent(self, limit: int, offset: int = 0) -> List[ChatMessage]:
        """Most recently persisted first."""
        ...

    async def trim(self, older_than: timedelta) -> int:
        """Delete messages older than ``older_than``; return the count removed."""
        ...


__all__ = ["ChatMessageStore"]
