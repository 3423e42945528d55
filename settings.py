# settings.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Project
    PROJECT_NAME: str = "Keyboard Shop Catalog API"
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: Optional[str] = None
    DATABASE_NAME: Optional[str] = None

    # Security
    JWT_SECRET: str = "super-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60 * 24  # 24h

    # Catalog
    PAGE_SIZE: int = 9
    MAX_PAGE_SIZE: int = 100
    REVIEW_LIMIT_PER_USER: int = 3
    REVIEW_WRITE_ATTEMPTS: int = 5

    # Frontend origins (CORS)
    CORS_ORIGINS: List[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
