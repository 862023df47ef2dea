"""
聊天消息领域实体 - 创建后不可变
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid


MESSAGE_TEXT_MIN_LENGTH = 1
MESSAGE_TEXT_MAX_LENGTH = 1000
# 存储列宽；更长的身份在 WebSocket 升级时即被拒绝
USER_ID_MAX_LENGTH = 255


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """聊天消息实体

    作者身份来自已认证的连接，从不由客户端提供。
    """

    user_id: str
    text: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self):
        self.validate_user_id()
        self.validate_text()
        if self.created_at.tzinfo is None:
            # 存储层（如 SQLite）可能丢失时区信息，统一视为 UTC
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    def validate_user_id(self) -> None:
        """业务规则：作者身份不能为空"""
        if not self.user_id:
            raise ValueError("聊天消息必须有作者")
        if len(self.user_id) > USER_ID_MAX_LENGTH:
            raise ValueError(f"作者ID不能超过{USER_ID_MAX_LENGTH}个字符")

    def validate_text(self) -> None:
        """业务规则：消息长度 1-1000 个字符"""
        if len(self.text) < MESSAGE_TEXT_MIN_LENGTH:
            raise ValueError("消息内容不能为空")
        if len(self.text) > MESSAGE_TEXT_MAX_LENGTH:
            raise ValueError(f"消息内容不能超过{MESSAGE_TEXT_MAX_LENGTH}个字符")

    @classmethod
    def create(cls, user_id: str, text: str) -> "ChatMessage":
        """以新的 id 和当前 UTC 时间创建消息"""
        return cls(user_id=user_id, text=text)
