"""
业务状态码 - 帖子、评论与聊天共用

HTTP 响应体中的 ``code`` 字段取值于此；与 HTTP 状态码的映射见 core.exceptions。
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # 请求参数 (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003

    # 业务规则 (2xxxx)，2x1xx 帖子/评论，2x2xx 聊天
    BUSINESS_ERROR = 20000
    TOKEN_INVALID = 20004
    TOKEN_EXPIRED = 20005
    NOT_FOUND = 20006
    POST_NOT_FOUND = 20101
    CHAT_MESSAGE_INVALID = 20201

    # 认证与权限 (3xxxx)
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # 服务端 (4xxxx)
    SYSTEM_ERROR = 40000
    DATABASE_ERROR = 40001
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
