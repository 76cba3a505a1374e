"""
Configuration module using Pydantic Settings.

Loads provider credentials, endpoints and pipeline toggles from environment
variables. Supports .env files for local development.
"""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # DeepSeek (OpenAI-compatible chat completions)
    deepseek_api_key: str = Field(..., min_length=1)
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-reasoner"
    deepseek_timeout: float = 120.0

    # Tavily web search
    tavily_api_key: str = Field(..., min_length=1)
    tavily_api_url: str = "https://api.tavily.com/search"
    tavily_timeout: float = 15.0

    # Pipeline
    search_enabled: bool = True

    # Telemetry
    telemetry_console_export: bool = False

    # App
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    @field_validator("deepseek_api_key", "tavily_api_key")
    @classmethod
    def _credential_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("credential must not be blank")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


def get_settings() -> Settings:
    """
    Load and validate settings.

    Raises:
        ConfigurationError: A required credential is missing or blank.
    """
    try:
        return Settings()
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]).upper() for err in exc.errors() if err["loc"]})
        raise ConfigurationError(
            f"Missing or invalid configuration: {', '.join(fields)}"
        ) from exc
