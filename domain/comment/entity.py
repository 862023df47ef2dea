"""
评论领域实体
"""
from datetime import datetime, timezone
from dataclasses import dataclass, field
import uuid


@dataclass
class Comment:
    """评论实体"""

    post_id: str
    author_id: str
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if len(self.content) < 3:
            raise ValueError("评论至少需要3个字符")
        if len(self.content) > 500:
            raise ValueError("评论不能超过500个字符")
