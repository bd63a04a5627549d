"""
Configuration system with environment-based settings.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Page fetching
    FETCH_TIMEOUT: float = 20.0
    PROBE_TIMEOUT: float = 10.0
    FETCH_USER_AGENT: str = "Mozilla/5.0 (compatible; SEOScope/1.0; +https://seoscope.dev/bot)"

    # Competitor comparison
    COMPETITOR_MAX_URLS: int = Field(9, ge=0)
    COMPETITOR_CONCURRENCY: int = Field(1, ge=1)   # 1 = strictly sequential

    # Recommendation collaborator (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    RECOMMENDATION_TIMEOUT: float = 60.0

    # Blended score weights (technical/content always present, speed/local optional)
    WEIGHT_TECHNICAL: float = 0.35
    WEIGHT_CONTENT: float = 0.25
    WEIGHT_SPEED: float = 0.25
    WEIGHT_LOCAL: float = 0.15

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v: str | list) -> list:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def blend_weights(self) -> dict[str, float]:
        return {
            "technical": self.WEIGHT_TECHNICAL,
            "content": self.WEIGHT_CONTENT,
            "speed": self.WEIGHT_SPEED,
            "local": self.WEIGHT_LOCAL,
        }


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - created once per process."""
    return Settings()
