"""
Environment-backed settings and logging setup for the Practice Tracker API.
"""
from functools import lru_cache
from logging.config import dictConfig
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ADMIN_PASSWORD = "dsadsa"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(5000, alias="PORT")
    # Comma-separated, e.g. "http://localhost:5173,https://dash.example.com"
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    # MongoDB
    mongodb_uri: str = Field("mongodb://localhost:27017", alias="MONGODB_URI")
    database_name: str = Field("practice_tracker", alias="DATABASE_NAME")
    mongodb_timeout_ms: int = Field(5000, alias="MONGODB_TIMEOUT_MS")

    # Shared secret for destructive writes
    admin_password: str = Field(DEFAULT_ADMIN_PASSWORD, alias="ADMIN_PASSWORD")

    # Development toggles
    use_in_memory_backends: bool = Field(False, alias="USE_IN_MEMORY_BACKENDS")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure logging for the application."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                },
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )
