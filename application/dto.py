"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field, model_serializer, ConfigDict
from typing import Optional, List
from datetime import datetime, timezone

from domain.chat.entity import MESSAGE_TEXT_MAX_LENGTH, MESSAGE_TEXT_MIN_LENGTH


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


# -------------------- Chat --------------------

class ChatMessageRequest(DTOBase):
    """入站聊天帧：客户端只能提供文本"""
    text: str = Field(..., min_length=MESSAGE_TEXT_MIN_LENGTH, max_length=MESSAGE_TEXT_MAX_LENGTH)

    model_config = ConfigDict(extra="ignore")


class ChatMessageDTO(DTOBase):
    """聊天消息响应DTO"""
    id: str
    user_id: str
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -------------------- Posts --------------------

class PostCreateDTO(DTOBase):
    """帖子创建DTO"""
    title: str = Field(..., min_length=3, max_length=100, description="标题，3-100个字符")
    content: str = Field(..., min_length=10, description="内容，至少10个字符")
    category_id: str = Field(..., pattern=r"^[123]$", description="分类：1、2 或 3")


class PostUpdateDTO(DTOBase):
    """帖子更新DTO"""
    title: str = Field(..., min_length=3, max_length=100)
    content: str = Field(..., min_length=10)


class PostResponseDTO(DTOBase):
    """帖子响应DTO"""
    id: str
    title: str
    content: str
    author_id: str
    category_id: str
    is_pinned: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PostListDTO(DTOBase):
    items: List[PostResponseDTO]
    total: int


# -------------------- Comments --------------------

class CommentCreateDTO(DTOBase):
    """评论创建DTO"""
    content: str = Field(..., min_length=3, max_length=500)


class CommentResponseDTO(DTOBase):
    """评论响应DTO"""
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentListDTO(DTOBase):
    items: List[CommentResponseDTO]
    total: int
