"""
应用配置
从环境变量 / .env 读取配置
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Hotel Admin"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置（任意 SQLAlchemy URL，例如托管的 PostgreSQL）
    DATABASE_URL: str = "sqlite:///./hotel_admin.db"

    # CORS 配置
    CORS_ORIGINS: List[str] = ["*"]

    # 启动时重放未完成的副作用（房间状态 / 客人状态同步）
    RECONCILE_ON_STARTUP: bool = True

    # 已完成副作用条目的保留天数，reconcile 时清理更早的条目
    JOURNAL_RETENTION_DAYS: int = 7

    # 仪表盘最近预订条数
    RECENT_BOOKINGS_LIMIT: int = 5

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
