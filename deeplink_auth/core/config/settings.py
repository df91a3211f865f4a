"""Main application settings and configuration management.

This module composes the settings from the different modules (app, auth,
redis) into a single, accessible `Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the application.

Environment Support:
- Development: Uses .env
- Test: Uses .env.test
- Staging: Uses .env.staging, Redis password required when Redis is the backend
- Production: Uses .env.production, Redis password required when Redis is the backend
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)


class Settings(AppSettings, AuthSettings, RedisSettings):
    """The main settings class that aggregates all application configurations.

    Security Note:
        - Never log secret fields (REDIS_PASSWORD, REDIS_URL with credentials).
    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="allow"
    )

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific configuration."""
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env == "development":
            self.DEBUG = True
            logger.info("Debug mode enabled for development environment")

        if env in ("staging", "production") and not self.SESSION_COOKIE_SECURE:
            logger.warning(f"SESSION_COOKIE_SECURE is disabled in {env} environment")

        logger.info(f"Application running in {env} environment")
        logger.info(f"Context storage backend: {self.CONTEXT_STORAGE_BACKEND}")


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production"
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        settings_instance = Settings()
    else:
        logger.info(f"No .env file found, using environment variables only (environment: {env})")
        settings_instance = Settings()

    return settings_instance


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
