"""Configuration management for callgate.

Uses pydantic-settings for type-safe environment variable loading. The
global toggles read by the function engine at call time live here.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Diagnostics mode (enables return type checks by default)",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Remote Function Toggles
    enable_remote_functions: bool = Field(
        default=True,
        description="Allow requests to call registered remote functions",
    )
    enable_script_functions: bool = Field(
        default=True,
        description="Allow remote functions implemented as scripts",
    )
    parse_arg_values: bool = Field(
        default=False,
        description="Resolve argument values before native calls (eager mode)",
    )
    strict_return_types: bool | None = Field(
        default=None,
        description="Verify return types against the registry (None = follow debug)",
    )

    # Script Runtime
    script_timeout_ms: int | None = Field(
        default=None,
        ge=1,
        description="Execution deadline for script loads and calls in milliseconds",
    )

    # Registry
    registry_path: Path | None = Field(
        default=None,
        description="JSON file with function registry rows",
    )

    @property
    def check_return_types(self) -> bool:
        """Whether the return type verifier is active."""
        if self.strict_return_types is None:
            return self.debug
        return self.strict_return_types


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
