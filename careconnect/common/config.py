# careconnect/common/config.py

import os
from typing import List
from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Load environment variables from the correct .env file
env_file = ".env" if os.getenv("APP_ENV", "development") == "development" else ".env.production"
load_dotenv(env_file)

class Settings(BaseSettings):
    APP_ENV: str = "development"
    DEBUG: bool = False
    DATABASE_URL: str = "sqlite+aiosqlite:///./careconnect.db"
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "info"

    # Notification settings
    SETTINGS_CACHE_DIR: str = ".settings_cache"
    REMOTE_TIMEOUT_SECONDS: float = 5.0

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("REMOTE_TIMEOUT_SECONDS")
    def positive_timeout(cls, value):
        if value <= 0:
            raise ValueError("REMOTE_TIMEOUT_SECONDS must be positive")
        return value

settings = Settings()
