"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional
from pydantic import model_validator


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./forum.db"


class ChatSettings(BaseModel):
    """实时聊天（WebSocket Hub）配置"""

    # 每个连接的发送队列容量；写满即视为慢消费者并断开
    send_queue_max: int = 256
    # Hub 中等待处理的广播上限；超出时读循环等待，形成背压
    intake_max: int = 64
    # 新连接加入时推送的历史消息条数
    history_limit: int = 100
    # 单个入站帧的最大字节数
    max_message_bytes: int = 512
    # 单次写入的截止时间（秒）
    write_wait_s: float = 10.0
    # 读超时（秒），每收到一帧（包括 pong）刷新
    pong_wait_s: float = 60.0
    # 心跳间隔（秒），必须小于 pong_wait_s
    ping_period_s: float = 54.0
    # 消息保留天数
    retention_days: int = 30
    # 保留清理任务的执行间隔（秒），0 表示禁用
    retention_sweep_interval_s: float = 3600.0

    @model_validator(mode="after")
    def _validate_timings(self):
        if self.send_queue_max < 1:
            raise ValueError("chat.send_queue_max 必须大于 0")
        if self.intake_max < 1:
            raise ValueError("chat.intake_max 必须大于 0")
        if self.ping_period_s >= self.pong_wait_s:
            raise ValueError("chat.ping_period_s 必须小于 chat.pong_wait_s")
        return self


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Forum Chat Service", validation_alias=AliasChoices("PROJECT_NAME", "APP_NAME"))
    VERSION: str = Field(default="1.0.0", validation_alias=AliasChoices("VERSION", "APP_VERSION"))
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    # 分组配置：Database/Chat 采用嵌套模型
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)

    # 安全配置
    SECRET_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET_KEY"),
        description="JWT签名密钥，生产环境必须设置"
    )
    ALGORITHM: str = Field(default="HS256", validation_alias=AliasChoices("ALGORITHM", "JWT_ALGORITHM"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=30,
        validation_alias=AliasChoices("ACCESS_TOKEN_EXPIRE_MINUTES", "JWT_EXPIRATION_MINUTES"),
    )  # 30分钟

    # CORS配置
    CORS_ORIGINS: list = ["http://localhost:3000", "http://localhost:8000"]

    # 分页配置（支持环境变量覆盖）
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
        env_nested_delimiter="__",
    )

    @model_validator(mode="after")
    def _validate_secret_key(self):
        # 所有环境均要求显式配置 SECRET_KEY（或 JWT_SECRET_KEY），避免热重载导致 Token 失效
        if not self.SECRET_KEY:
            raise ValueError(
                "SECRET_KEY 未配置。请在环境变量或 .env 中设置 SECRET_KEY（或 JWT_SECRET_KEY）"
            )
        return self

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
