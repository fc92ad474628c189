"""
Markov Service Configuration
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ===== Service =====
    SERVICE_NAME: str = Field(default="markov-service")
    SERVICE_VERSION: str = Field(default="1.0.0")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    LOG_LEVEL: str = Field(default="info")
    DEBUG: bool = Field(default=False)

    # ===== CORS =====
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"]
    )

    # ===== Markov Models =====
    MARKOV_DEFAULT_ORDER: int = Field(default=2, ge=1, le=5)
    MARKOV_MAX_MODELS: int = Field(default=32, ge=1)

    # ===== Generation Defaults =====
    DEFAULT_MIN_LENGTH: int = Field(default=10, ge=1)
    DEFAULT_MAX_LENGTH: int = Field(default=50, ge=1)
    DEFAULT_TEMPERATURE: float = Field(default=1.0, gt=0)
    DEFAULT_END_ON_SENTENCE: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
