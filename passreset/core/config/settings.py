"""Main settings for passreset.

This module composes the settings from the different modules (app, redis,
recovery) into a single ``Settings`` class and exposes a ``settings``
singleton loaded from environment variables and ``.env`` files.

Environment Support:
- Development: Uses .env
- Test: Uses .env.test when present
- Staging / Production: Uses .env.staging / .env.production, Redis password required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .recovery import RecoverySettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(AppSettings, RedisSettings, RecoverySettings):
    """The settings class that aggregates all configurations.

    Usage:
        - Access settings via the singleton instance ``settings``, or build a
          dedicated instance with ``Settings(...)`` for tests and embedding.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def validate_required_fields(self) -> None:
        """Fails fast on settings that are unsafe outside development.

        Raises:
            ValueError: If a required secret is missing in staging/production.
        """
        if self.APP_ENV in ("staging", "production"):
            if not self.REDIS_PASSWORD.get_secret_value():
                error_msg = f"REDIS_PASSWORD must be set in {self.APP_ENV} environment."
                logger.error(error_msg)
                raise ValueError(error_msg)
            if self.RESET_BASE_URL.startswith("http://"):
                logger.warning(
                    f"RESET_BASE_URL uses plain http in {self.APP_ENV}; reset links will leak over the wire."
                )
        logger.info(f"Application running in {self.APP_ENV} environment")


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
        "production": ".env.production",
    }
    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        return Settings(_env_file=env_file)
    if Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
    else:
        logger.debug(f"No .env file found, using environment variables only (environment: {env})")
    return Settings()


settings = create_settings()
settings.validate_required_fields()
