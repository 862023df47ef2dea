"""
聊天应用服务 - 消息持久化、历史查询与保留清理

实现 ChatMessageStore 协议，供 Hub 在广播前持久化消息、在新连接加入时回放历史。
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from domain.chat.entity import ChatMessage
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.common.exceptions import ChatMessagePersistenceException
from application.dto import ChatMessageDTO
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)


class ChatApplicationService:
    """聊天消息存储（ChatMessageStore 实现）"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def save(self, message: ChatMessage) -> None:
        """保存消息；失败时抛出 ChatMessagePersistenceException"""
        try:
            async with self._uow_factory() as uow:
                await uow.chat_message_repository.add(message)
        except Exception as exc:
            logger.error(
                "chat_message_save_failed",
                message_id=message.id,
                user_id=message.user_id,
                error=str(exc),
            )
            raise ChatMessagePersistenceException(message.id, str(exc)) from exc
        logger.debug("chat_message_saved", message_id=message.id, user_id=message.user_id)

    async def recent(self, limit: int, offset: int = 0) -> List[ChatMessage]:
        """按创建时间倒序返回最近的消息"""
        async with self._uow_factory(readonly=True) as uow:
            return await uow.chat_message_repository.list_recent(limit, offset)

    async def trim(self, older_than: timedelta) -> int:
        """删除早于 now - older_than 的消息"""
        before = datetime.now(timezone.utc) - older_than
        async with self._uow_factory() as uow:
            count = await uow.chat_message_repository.delete_older_than(before)
        logger.info(
            "chat_messages_trimmed",
            count=count,
            older_than_seconds=older_than.total_seconds(),
        )
        return count

    async def get_messages(self, limit: int = 0, offset: int = 0) -> List[ChatMessageDTO]:
        """历史查询（HTTP 接口），不经过 Hub 的协调循环"""
        if limit <= 0:
            limit = settings.DEFAULT_PAGE_SIZE
        limit = min(limit, settings.MAX_PAGE_SIZE)
        offset = max(offset, 0)
        messages = await self.recent(limit, offset)
        return [ChatMessageDTO.model_validate(m) for m in messages]


async def run_retention_sweep(
    store: ChatApplicationService,
    *,
    retention: timedelta,
    interval_s: float,
) -> None:
    """周期性清理过期消息，直到任务被取消。

    单次清理失败只记录日志，不终止循环。
    """
    logger.info(
        "chat_retention_sweep_started",
        retention_days=retention.days,
        interval_s=interval_s,
    )
    while True:
        try:
            await store.trim(retention)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("chat_retention_sweep_failed", error=str(exc), exc_info=True)
        await asyncio.sleep(interval_s)
