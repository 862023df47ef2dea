"""
评论仓储接口
"""
from abc import ABC, abstractmethod
from typing import List

from .entity import Comment


class CommentRepository(ABC):
    """评论仓储抽象接口"""

    @abstractmethod
    async def create(self, comment: Comment) -> Comment:
        pass

    @abstractmethod
    async def list_by_post(self, post_id: str, limit: int = 50, offset: int = 0) -> List[Comment]:
        """按创建时间正序获取某个帖子的评论"""
        pass

    @abstractmethod
    async def count_by_post(self, post_id: str) -> int:
        pass
