"""Configuration repository for PostgreSQL."""

from psycopg2.extras import RealDictCursor

from src.database.postgres import PostgresClient
from src.domain.config import ConfigEntry
from src.logger.logger import get_logger
from src.logger.types import Category, param


class ConfigRepository:
    """Repository for persisted configuration rows in PostgreSQL."""

    def __init__(self, postgres_client: PostgresClient) -> None:
        """
        Initialize ConfigRepository.

        Args:
            postgres_client: PostgreSQL client instance
        """
        self.postgres = postgres_client
        self.logger = get_logger().with_category(Category.DATABASE)

    def ensure_table_exists(self) -> None:
        """Create the config table if it does not exist yet."""
        with self.postgres.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        CREATE TABLE IF NOT EXISTS config (
                            id SERIAL PRIMARY KEY,
                            key TEXT NOT NULL UNIQUE,
                            value TEXT NOT NULL
                        )
                        """
                    )
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error("Failed to create config table", e)
                raise

    def get(self, key: str) -> ConfigEntry | None:
        """
        Get configuration entry by key.

        Args:
            key: Configuration key (lower-case)

        Returns:
            ConfigEntry or None if not found
        """
        conn = self.postgres.get_connection()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT id, key, value
                    FROM config
                    WHERE key = %s
                    """,
                    (key,),
                )
                row = cur.fetchone()

                if row is None:
                    return None

                return ConfigEntry(id=row["id"], key=row["key"], value=row["value"])
        finally:
            self.postgres.put_connection(conn)

    def get_all(self) -> list[ConfigEntry]:
        """
        Get all configuration entries.

        Returns:
            List of ConfigEntry, in table order
        """
        conn = self.postgres.get_connection()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    """
                    SELECT id, key, value
                    FROM config
                    ORDER BY id
                    """
                )
                rows = cur.fetchall()

                return [
                    ConfigEntry(id=row["id"], key=row["key"], value=row["value"])
                    for row in rows
                ]
        finally:
            self.postgres.put_connection(conn)

    def insert(self, entry: ConfigEntry) -> ConfigEntry:
        """
        Insert a new configuration entry.

        A concurrent writer may have created the same key since the caller
        looked it up; the row is then overwritten instead of failing
        on the unique constraint.

        Args:
            entry: Entry to insert; its id is filled from the database

        Returns:
            The same entry with id set
        """
        conn = self.postgres.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO config (key, value)
                    VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value
                    RETURNING id
                    """,
                    (entry.key, entry.value),
                )
                entry.id = cur.fetchone()[0]
            conn.commit()

            self.logger.info("Config inserted", param("key", entry.key))
            return entry
        except Exception as e:
            conn.rollback()
            self.logger.error("Failed to insert config", e, param("key", entry.key))
            raise
        finally:
            self.postgres.put_connection(conn)

    def update(self, entry: ConfigEntry) -> None:
        """
        Update the value of an existing configuration entry.

        Args:
            entry: Entry previously read from the repository
        """
        conn = self.postgres.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE config
                    SET value = %s
                    WHERE key = %s
                    """,
                    (entry.value, entry.key),
                )
            conn.commit()

            self.logger.info("Config updated", param("key", entry.key))
        except Exception as e:
            conn.rollback()
            self.logger.error("Failed to update config", e, param("key", entry.key))
            raise
        finally:
            self.postgres.put_connection(conn)
