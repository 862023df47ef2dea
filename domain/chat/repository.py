"""
聊天消息仓储接口
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from .entity import ChatMessage


class ChatMessageRepository(ABC):
    """聊天消息仓储抽象接口（仅追加）"""

    @abstractmethod
    async def add(self, message: ChatMessage) -> None:
        """保存消息"""
        pass

    @abstractmethod
    async def list_recent(self, limit: int, offset: int = 0) -> List[ChatMessage]:
        """按创建时间倒序获取消息"""
        pass

    @abstractmethod
    async def delete_older_than(self, before: datetime) -> int:
        """删除早于指定时间的消息，返回删除条数"""
        pass
