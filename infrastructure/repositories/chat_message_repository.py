"""
聊天消息仓储实现 - 使用SQLAlchemy实现数据访问
"""
from datetime import datetime
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from domain.chat.entity import ChatMessage
from domain.chat.repository import ChatMessageRepository
from infrastructure.models.chat_message import ChatMessageModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyChatMessageRepository(ChatMessageRepository):
    """聊天消息仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ChatMessageModel) -> ChatMessage:
        return ChatMessage(
            id=model.id,
            user_id=model.user_id,
            text=model.text,
            created_at=model.created_at,
        )

    def _to_model(self, entity: ChatMessage) -> ChatMessageModel:
        return ChatMessageModel(
            id=entity.id,
            user_id=entity.user_id,
            text=entity.text,
            created_at=entity.created_at,
        )

    async def add(self, message: ChatMessage) -> None:
        self.session.add(self._to_model(message))
        await self.session.flush()

    async def list_recent(self, limit: int, offset: int = 0) -> List[ChatMessage]:
        # 按持久化顺序倒序，而非客户端侧生成的 created_at
        query = (
            select(ChatMessageModel)
            .order_by(ChatMessageModel.seq.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def delete_older_than(self, before: datetime) -> int:
        result = await self.session.execute(
            delete(ChatMessageModel).where(ChatMessageModel.created_at < before)
        )
        count = result.rowcount or 0
        logger.debug("chat_messages_deleted", count=count, before=before.isoformat())
        return count
