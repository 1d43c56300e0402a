"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Synesthesia Screening API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Session store
    # "memory" keeps sessions for the lifetime of the process only.
    # "database" persists through SQLAlchemy to DATABASE_URL.
    SESSION_STORE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: str = Field(
        default="sqlite://",
        description="SQLAlchemy URL used when SESSION_STORE_BACKEND='database'",
    )

    # Scoring
    MIN_RESPONSES_PER_MODALITY: int = Field(
        default=5,
        ge=1,
        description="Responses a modality needs before a consistency score is computed",
    )
    # Number of recommendations shown before the "additional insights" section
    RECOMMENDATION_PREVIEW_COUNT: int = Field(default=3, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_store_config(self) -> Self:
        """Validate session store configuration at startup."""
        if self.SESSION_STORE_BACKEND == "database" and not self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL must be set when SESSION_STORE_BACKEND='database'."
            )
        return self


settings = Settings()
