"""
Context storage and Redis settings.
"""
import logging

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines which backend stores the ephemeral auth context and, for Redis,
    how to connect to it.

    Security Note:
        - REDIS_PASSWORD must be set in production to prevent unauthorized access.
        - REDIS_SSL should be enabled whenever Redis is reached over an untrusted
          network; stored entries include pending OAuth state tokens.
    """
    CONTEXT_STORAGE_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    CONTEXT_KEY_PREFIX: str = "authctx"

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @model_validator(mode="after")
    def _validate_redis_configuration(self) -> "RedisSettings":
        """
        Ensures REDIS_PASSWORD is set for staging/production when Redis backs
        the context store, and assembles REDIS_URL when not given explicitly.

        Returns:
            Self instance with REDIS_URL populated.

        Raises:
            ValueError: If the password is missing in staging/production.
        """
        app_env = getattr(self, "APP_ENV", "development")
        password = self.REDIS_PASSWORD.get_secret_value()

        if (
            self.CONTEXT_STORAGE_BACKEND == "redis"
            and app_env in ("staging", "production")
            and not password
        ):
            logger.error(f"REDIS_PASSWORD must be set in {app_env} environment.")
            raise ValueError("REDIS_PASSWORD must be set in staging/production environments")

        if not self.REDIS_URL:
            protocol = "rediss" if self.REDIS_SSL else "redis"
            credentials = f":{password}@" if password else ""
            self.REDIS_URL = f"{protocol}://{credentials}{self.REDIS_HOST}:{self.REDIS_PORT}/0"
            logger.debug("Assembled REDIS_URL (password masked for security).")
        return self
