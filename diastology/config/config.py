"""
Application configuration with environment-based settings.
All configuration is explicit, validated, and logged at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development but require
    explicit configuration in production environments.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = Field(default="Diastology", description="Application name")
    app_version: str = Field(default="0.2.2", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Navigation engine
    max_evaluator_chain: int = Field(
        default=32,
        ge=1,
        description="Maximum consecutive evaluator nodes resolved in one step"
    )
    default_algorithm_id: str = Field(
        default="ase2016",
        description="Algorithm offered first when listing algorithms"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] | None = Field(
        default=None,
        description="Log output format; follows the environment when unset"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def effective_log_format(self) -> Literal["json", "console"]:
        """JSON in production, console elsewhere, unless ``log_format`` is set."""
        if self.log_format is not None:
            return self.log_format
        return "json" if self.is_production else "console"

    def get_safe_config_dict(self) -> dict:
        """Return configuration dict suitable for startup logging."""
        return self.model_dump()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    Use dependency injection in FastAPI routes for testability.
    """
    return Settings()
