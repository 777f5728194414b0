"""
Config store service entry point.

Wires the typed config service to PostgreSQL and Redis Streams, applies
``Name=value`` pairs given on the command line as one bulk save, and logs
the resulting settings.

Usage:
    python -m src.main RssSyncInterval=30 AutoDownloadPropers=false
"""

import sys

from src.config.settings import Settings
from src.database.postgres import PostgresClient
from src.events.client import RedisClient
from src.events.publisher import ConfigEventPublisher, EventPublisher
from src.logger.logger import get_logger, init_logger
from src.logger.postgres_writer import PostgresWriter
from src.logger.types import Category, category, param
from src.repository.config_repository import ConfigRepository
from src.services.config_service import ConfigService


def parse_assignments(args: list[str]) -> dict[str, str]:
    """Parse ``Name=value`` arguments; the value may be empty."""
    values: dict[str, str] = {}
    for arg in args:
        name, sep, value = arg.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected Name=value, got {arg!r}")
        values[name.strip()] = value
    return values


def shutdown(
    redis_client: RedisClient,
    postgres_client: PostgresClient,
    log_writer: PostgresWriter,
) -> None:
    """Graceful shutdown."""
    logger = get_logger()
    logger.info("Shutting down config store...")

    redis_client.close()
    postgres_client.close()

    # Закрыть log writer (flush оставшихся логов)
    log_writer.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    assignments = parse_assignments(sys.argv[1:] if argv is None else argv)

    settings = Settings()

    log_writer = PostgresWriter(
        dsn=settings.postgres.dsn,
        batch_size=100,
        flush_interval=5.0,
    )
    log_writer.connect()

    init_logger(
        service_name=settings.service_name,
        environment=settings.environment,
        writer=log_writer,
        min_level=settings.log_level,
    )
    logger = get_logger()

    logger.info(
        "Starting config store",
        param("environment", settings.environment),
        param("service_name", settings.service_name),
        param("version", settings.service_version),
    )

    postgres_client = PostgresClient(settings.postgres)
    postgres_client.connect()
    logger.info("Connected to PostgreSQL", category(Category.DATABASE))

    redis_client = RedisClient(settings.redis)
    redis_client.connect()
    logger.info(
        "Connected to Redis",
        category(Category.MESSENGER),
        param("host", settings.redis.host),
        param("stream", settings.redis.config_stream),
    )

    try:
        repository = ConfigRepository(postgres_client)
        repository.ensure_table_exists()

        notifier = ConfigEventPublisher(
            EventPublisher(redis_client, settings.redis.config_stream)
        )
        service = ConfigService(repository, notifier)

        if assignments:
            service.save_config_dictionary(assignments)

        for name, value in service.all_with_defaults().items():
            logger.info(
                f"{name} = {value!r}",
                category(Category.CONFIG),
                param("name", name),
            )
    except Exception as e:
        logger.error("Config store run failed", e)
        return 1
    finally:
        shutdown(redis_client, postgres_client, log_writer)

    return 0


if __name__ == "__main__":
    sys.exit(main())
