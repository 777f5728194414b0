"""Settings module for the config store service."""

import os

from src.database.postgres import PostgresConfig
from src.logger.types import Level


class RedisConfig:
    """Redis configuration."""

    def __init__(self) -> None:
        self.host = os.getenv("MESSENGER_HOST", "messenger")
        self.port = int(os.getenv("MESSENGER_PORT", "6379"))
        self.db = int(os.getenv("MESSENGER_DB", "0"))
        self.password = self._read_password()

        # Stream для публикации config_saved
        self.config_stream = os.getenv("CONFIG_EVENTS_STREAM", "config-updates")

    def _read_password(self) -> str | None:
        """Read Redis password from Docker secret or environment."""
        secret_path = "/run/secrets/redis_password"
        try:
            with open(secret_path) as f:
                return f.read().strip()
        except FileNotFoundError:
            return os.getenv("MESSENGER_PASSWORD")


class Settings:
    """Application settings."""

    def __init__(self) -> None:
        # Service info
        self.environment = os.getenv("ENVIRONMENT", "dev")
        self.service_name = os.getenv("SERVICE_NAME", "configstore")
        self.service_version = os.getenv("SERVICE_VERSION", "0.1.0")
        self.log_level = Level.parse(os.getenv("LOG_LEVEL", "debug"), Level.DEBUG)

        # PostgreSQL
        self.postgres = PostgresConfig()

        # Redis
        self.redis = RedisConfig()
