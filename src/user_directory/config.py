"""Configuration management for the user directory service.

This module provides centralized configuration management using Pydantic settings
with environment variable support, validation, and error handling.
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support and validation."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database Configuration
    database_url: Annotated[str, Field(description="Relational store connection URL")] = (
        "sqlite:///./user_directory.db"
    )
    db_pool_size: Annotated[int, Field(description="Connections kept in the pool")] = 10
    db_max_overflow: Annotated[int, Field(description="Extra connections created on demand")] = 20
    db_pool_timeout: Annotated[int, Field(description="Seconds to wait for a pooled connection")] = 30
    db_pool_recycle: Annotated[int, Field(description="Seconds before a connection is recycled")] = 3600

    # Health probe
    probe_timeout_seconds: Annotated[
        float, Field(description="Time budget for the store connectivity probe")
    ] = 1.0

    # Listing
    default_page_size: Annotated[int, Field(description="Default page size for user listing")] = 20
    max_page_size: Annotated[int, Field(description="Upper bound for user listing page size")] = 100

    debug: Annotated[bool, Field(description="Enable debug mode")] = False
    log_level: Annotated[str, Field(description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")] = "INFO"

    # Environment Configuration
    environment: Annotated[str, Field(description="Application environment (development, testing, production)")] = "development"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(("postgresql", "mysql", "sqlite://")):
            raise ValueError("database_url must be a valid PostgreSQL, MySQL or SQLite URL")
        return v

    @field_validator("db_pool_size", "db_max_overflow", "db_pool_timeout", "db_pool_recycle")
    @classmethod
    def validate_pool_settings(cls, v: int) -> int:
        """Validate pool settings are not negative."""
        if v < 0:
            raise ValueError("pool settings must be non-negative integers")
        return v

    @field_validator("probe_timeout_seconds")
    @classmethod
    def validate_probe_timeout(cls, v: float) -> float:
        """Validate the probe time budget is positive."""
        if v <= 0:
            raise ValueError("probe_timeout_seconds must be positive")
        return v

    @field_validator("default_page_size", "max_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("page sizes must be positive integers")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "testing", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v.lower()

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured store is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


def get_settings() -> Settings:
    """Get application settings with error handling.

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigurationError: If configuration validation fails
    """
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {str(e)}") from e


# Global settings instance
settings = get_settings()
