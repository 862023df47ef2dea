"""
聊天消息数据库模型 - SQLAlchemy ORM模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime
from datetime import datetime, timezone

from domain.chat.entity import USER_ID_MAX_LENGTH
from .base import Base


class ChatMessageModel(Base):
    """聊天消息表（仅追加）

    ``seq`` 按持久化顺序递增，历史查询以它排序，与实时广播的顺序一致；
    ``created_at`` 只用于保留清理。
    """
    __tablename__ = "chat_messages"

    seq = Column(Integer, primary_key=True, autoincrement=True, comment="持久化顺序")
    id = Column(String(36), nullable=False, unique=True, comment="消息ID（uuid4）")
    user_id = Column(String(USER_ID_MAX_LENGTH), nullable=False, index=True, comment="作者ID")
    text = Column(Text, nullable=False, comment="消息内容")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        comment="创建时间"
    )

    def __repr__(self):
        return f"<ChatMessageModel(seq={self.seq}, id={self.id}, user_id='{self.user_id}')>"
