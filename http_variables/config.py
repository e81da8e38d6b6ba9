"""
Application configuration using Pydantic Settings.

Values load from environment variables prefixed with ``HTTP_VARIABLES_``
(or from a local .env file) and are read through ``get_settings()``.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the variable resolution service."""

    model_config = SettingsConfigDict(
        env_prefix="HTTP_VARIABLES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./http_variables.db",
        description="SQLAlchemy URL of the environment store.",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Default timeout in seconds for executed requests.",
    )
    dotenv_search_parents: int = Field(
        default=2,
        ge=0,
        description="How many parent directories to search for a .env file.",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR.",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
