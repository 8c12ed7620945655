import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # API设置
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "CSVInsight"

    # CORS设置
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
        "http://localhost:5173",  # Vite默认端口
        "http://127.0.0.1:5173"
    ]

    # LLM设置 (OpenAI兼容接口)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT: float = 120.0
    LLM_MAX_TOKENS: int = 8192

    # 提示词采样设置
    INSIGHT_SAMPLE_ROWS: int = 20
    CLEANING_SAMPLE_ROWS: int = 15
    CLEANING_MAX_ROWS: int = 20

    # 文件上传设置
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # 数据库设置 (空字符串表示不启用持久化)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./csvinsight.db")

    # 调试设置
    DEBUG: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes", "on")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"  # 允许额外的环境变量，但忽略它们
    )

settings = Settings()
