"""
请求/响应日志中间件
记录HTTP请求和响应，包括耗时统计（WebSocket 会话由聊天模块自行记录）
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    日志记录中间件

    功能：
    1. 记录请求开始（方法、路径、查询参数）
    2. 记录响应状态码与耗时
    3. 记录未处理异常后重新抛出
    """

    # 跳过日志的路径
    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        logger.info(
            "request_started",
            query_params=dict(request.query_params),
            user_agent=request.headers.get("User-Agent"),
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=round(time.perf_counter() - start_time, 4),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 500 else logger.info
        log("request_finished", status_code=response.status_code, duration=round(duration, 4))
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response
