# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_furniture.db"
    # Milliseconds; applied as statement_timeout (PostgreSQL) or busy timeout (SQLite)
    DB_QUERY_TIMEOUT_MS: int = 10000

    SECRET_KEY: str = "dev-secret-change-me"
    REFRESH_SECRET_KEY: str = "dev-refresh-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    # development | production | test
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    FRONTEND_URL: str = "http://localhost:3000"

    # Performance monitor thresholds and ring buffer size
    SLOW_REQUEST_MS: int = 1000
    SLOW_QUERY_MS: int = 500
    METRICS_CAPACITY: int = 1000

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

settings = Settings()
