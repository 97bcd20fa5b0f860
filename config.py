import os
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    #db settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 5000  # 0 disables
    DB_POOL_TIMEOUT: float = 30.0  # seconds to wait for a free connection

    #http settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
