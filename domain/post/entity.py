"""
帖子领域实体 - 包含核心业务规则
"""
from datetime import datetime, timezone
from typing import Optional
from dataclasses import dataclass, field
import uuid


ALLOWED_CATEGORIES = frozenset({"1", "2", "3"})


@dataclass
class Post:
    """帖子实体"""

    title: str
    content: str
    author_id: str
    category_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_pinned: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.validate_title()
        self.validate_content()
        self.validate_category()

    def validate_title(self) -> None:
        """业务规则：标题 3-100 个字符"""
        if len(self.title) < 3:
            raise ValueError("标题至少需要3个字符")
        if len(self.title) > 100:
            raise ValueError("标题不能超过100个字符")

    def validate_content(self) -> None:
        """业务规则：内容至少 10 个字符"""
        if len(self.content) < 10:
            raise ValueError("内容至少需要10个字符")

    def validate_category(self) -> None:
        if self.category_id not in ALLOWED_CATEGORIES:
            raise ValueError("category_id 只能是 1、2 或 3")

    def edit(self, title: str, content: str) -> None:
        """业务规则：修改标题和内容"""
        self.title = title
        self.content = content
        self.validate_title()
        self.validate_content()
        self.updated_at = datetime.now(timezone.utc)
