# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_pos.db"

    # Upper bound for waiting on a row/table lock held by another transaction
    LOCK_TIMEOUT_SECONDS: float = 5.0

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"

    QUOTATION_LIST_LIMIT: int = 200
    SALE_LIST_LIMIT: int = 200

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
