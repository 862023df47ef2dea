"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class ValidationException(BusinessException):
    """实体校验失败（由 ValueError 转换而来）"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="ValidationError",
            field=field,
        )


class PostNotFoundException(BusinessException):
    def __init__(self, post_id: Optional[str] = None):
        details = {"post_id": post_id} if post_id else None
        super().__init__(
            code=BusinessCode.POST_NOT_FOUND,
            message="Post not found",
            error_type="PostNotFound",
            details=details,
        )


class InvalidChatMessageException(BusinessException):
    """入站聊天帧无法解析或不满足约束"""

    def __init__(self, reason: str):
        super().__init__(
            code=BusinessCode.CHAT_MESSAGE_INVALID,
            message=f"Invalid chat message: {reason}",
            error_type="InvalidChatMessage",
            details={"reason": reason},
        )


class ChatMessagePersistenceException(BusinessException):
    """聊天消息持久化失败"""

    def __init__(self, message_id: str, reason: str):
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message="Failed to persist chat message",
            error_type="ChatMessagePersistenceError",
            details={"message_id": message_id, "reason": reason},
        )
