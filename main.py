"""
FastAPI应用主入口
"""
import asyncio
import contextlib
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import chat as chat_routes
from api.routes import posts as posts_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.services.chat_service import ChatApplicationService, run_retention_sweep
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.database import create_tables, engine
from infrastructure.realtime.hub import ChatHub
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


# 初始化日志：在入口处显式配置
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    await create_tables()
    logger.info("database_initialized", url=engine.url.render_as_string(hide_password=True))

    # 聊天 Hub：进程内单实例，随应用启停
    store = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    hub = ChatHub(
        store,
        history_limit=settings.chat.history_limit,
        intake_max=settings.chat.intake_max,
    )
    hub.start()
    app.state.chat_store = store
    app.state.chat_hub = hub

    sweeper = None
    if settings.chat.retention_sweep_interval_s > 0:
        sweeper = asyncio.create_task(
            run_retention_sweep(
                store,
                retention=timedelta(days=settings.chat.retention_days),
                interval_s=settings.chat.retention_sweep_interval_s,
            ),
            name="chat-retention-sweep",
        )
        app.state.chat_sweeper = sweeper

    logger.info(
        "application_started",
        project=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
    )

    yield

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await hub.shutdown()
    await engine.dispose()
    logger.info("application_shutdown")


# 创建FastAPI应用
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="论坛服务：帖子/评论 HTTP 接口与实时聊天 WebSocket",
    lifespan=lifespan,
)

# 注册异常处理器
register_exception_handlers(app)

# 后添加的中间件在外层：Logging 需要 RequestID 已绑定上下文
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(chat_routes.router, prefix="/api/v1")
app.include_router(posts_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    hub = getattr(app.state, "chat_hub", None)
    return success_response(
        data={
            "status": "healthy",
            "chat_hub": "running" if hub is not None and hub.running else "stopped",
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
