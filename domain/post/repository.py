"""
帖子仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Post


class PostRepository(ABC):
    """帖子仓储抽象接口"""

    @abstractmethod
    async def create(self, post: Post) -> Post:
        pass

    @abstractmethod
    async def get_by_id(self, post_id: str) -> Optional[Post]:
        pass

    @abstractmethod
    async def get_all(self, limit: int = 50, offset: int = 0,
                      category_id: Optional[str] = None) -> List[Post]:
        """按创建时间倒序获取帖子"""
        pass

    @abstractmethod
    async def count(self, category_id: Optional[str] = None) -> int:
        pass

    @abstractmethod
    async def update(self, post: Post) -> Post:
        pass

    @abstractmethod
    async def delete(self, post_id: str) -> bool:
        pass
