"""
Configuration management for the Work Item Tracker core.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="Work Item Tracker")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # API links
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Scheme and host used to build absolute resource links",
    )
    api_path_prefix: str = Field(default="/api")

    # Codebases created on demand from a work item's codebase attribute
    codebase_default_type: str = Field(default="git")
    codebase_default_stack_id: str = Field(default="java-centos")

    # CSV export
    csv_list_delimiter: str = Field(default=";")

    # Paging
    page_limit_default: int = Field(default=20, ge=1)
    page_limit_max: int = Field(default=100, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    model_config = SettingsConfigDict(
        env_prefix="WIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global settings
    settings = None
