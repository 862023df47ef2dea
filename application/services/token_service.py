"""
令牌服务 - JWT 访问令牌的签发与校验

聊天连接在升级时只校验一次令牌，之后整个会话使用校验得到的身份。
"""
from typing import Optional, Union
from datetime import datetime, timedelta, timezone
import jwt
import uuid

from core.config import settings
from core.exceptions import TokenExpiredException
from core.logging_config import get_logger


logger = get_logger(__name__)


class TokenService:
    """访问令牌服务（HS256）"""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret_key = secret_key or settings.SECRET_KEY
        self._algorithm = algorithm or settings.ALGORITHM

    def create_access_token(
        self,
        user_id: Union[str, int],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """创建访问令牌"""
        expire = datetime.now(timezone.utc) + (
            expires_delta
            if expires_delta is not None
            else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode = {
            "sub": str(user_id),
            "user_id": str(user_id),
            "exp": expire,
            "type": "access",
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    async def verify_access_token(self, token: str) -> Optional[str]:
        """Verify an access JWT and return the caller identity.

        - Expired token: raise TokenExpiredException
        - Invalid token, wrong type or missing identity: return None
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.InvalidTokenError as exc:
            logger.info("access_token_invalid", error=str(exc))
            return None

        # 未携带 type 的令牌（如外部认证服务签发）按访问令牌处理
        if payload.get("type", "access") != "access":
            return None

        user_id = payload.get("user_id") or payload.get("sub")
        if not user_id:
            return None
        return str(user_id)
