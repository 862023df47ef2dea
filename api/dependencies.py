"""
API依赖项 - 服务装配与认证
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from application.services.chat_service import ChatApplicationService
from application.services.post_service import PostApplicationService
from application.services.token_service import TokenService
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

# HTTP Bearer for direct API calls
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


async def get_token_service() -> TokenService:
    return TokenService()


async def get_chat_service() -> ChatApplicationService:
    return ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)


async def get_post_service() -> PostApplicationService:
    return PostApplicationService(uow_factory=SQLAlchemyUnitOfWork)


async def get_current_user_id(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    token_service: TokenService = Depends(get_token_service),
) -> str:
    """从 Bearer token 中解析当前用户身份"""
    if not bearer_token or not bearer_token.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="未提供认证凭据",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = await token_service.verify_access_token(bearer_token.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭据",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
