"""
帖子与评论数据库模型 - SQLAlchemy ORM模型
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from datetime import datetime, timezone

from .base import Base


class PostModel(Base):
    """帖子表"""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, comment="帖子ID（uuid4）")
    title = Column(String(100), nullable=False, comment="标题")
    content = Column(Text, nullable=False, comment="内容")
    author_id = Column(String(64), nullable=False, index=True, comment="作者ID")
    category_id = Column(String(16), nullable=False, index=True, comment="分类ID")
    is_pinned = Column(Boolean, default=False, nullable=False, comment="是否置顶")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, comment="更新时间")

    def __repr__(self):
        return f"<PostModel(id={self.id}, title='{self.title}')>"


class CommentModel(Base):
    """评论表"""
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, comment="评论ID（uuid4）")
    post_id = Column(
        String(36),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="所属帖子ID"
    )
    author_id = Column(String(64), nullable=False, comment="作者ID")
    content = Column(String(500), nullable=False, comment="内容")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    def __repr__(self):
        return f"<CommentModel(id={self.id}, post_id='{self.post_id}')>"
