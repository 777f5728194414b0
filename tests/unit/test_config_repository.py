from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import MagicMock

import psycopg2
import pytest

from src.domain.config import ConfigEntry
from src.repository.config_repository import ConfigRepository

pytestmark = pytest.mark.unit


@pytest.fixture
def cursor() -> MagicMock:
    return MagicMock()


@pytest.fixture
def conn(cursor) -> MagicMock:
    connection = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    return connection


@pytest.fixture
def postgres(conn) -> MagicMock:
    client = MagicMock()
    client.get_connection.return_value = conn

    @contextmanager
    def borrow():
        try:
            yield conn
        finally:
            client.put_connection(conn)

    client.connection.side_effect = borrow
    return client


@pytest.fixture
def repo(postgres) -> ConfigRepository:
    return ConfigRepository(postgres)


def test_get_returns_entry(repo, cursor, postgres, conn) -> None:
    cursor.fetchone.return_value = {"id": 4, "key": "retention", "value": "7"}

    entry = repo.get("retention")

    assert entry == ConfigEntry(key="retention", value="7", id=4)
    assert cursor.execute.call_args.args[1] == ("retention",)
    postgres.put_connection.assert_called_once_with(conn)


def test_get_missing_returns_none(repo, cursor) -> None:
    cursor.fetchone.return_value = None

    assert repo.get("nothing") is None


def test_get_all_maps_rows(repo, cursor) -> None:
    cursor.fetchall.return_value = [
        {"id": 1, "key": "a", "value": "1"},
        {"id": 2, "key": "b", "value": ""},
    ]

    assert repo.get_all() == [
        ConfigEntry(key="a", value="1", id=1),
        ConfigEntry(key="b", value="", id=2),
    ]


def test_insert_sets_id_and_commits(repo, cursor, conn) -> None:
    cursor.fetchone.return_value = (12,)

    entry = repo.insert(ConfigEntry(key="filechmod", value="0600"))

    assert entry.id == 12
    assert cursor.execute.call_args.args[1] == ("filechmod", "0600")
    conn.commit.assert_called_once()


def test_insert_overwrites_row_created_concurrently(repo, cursor) -> None:
    cursor.fetchone.return_value = (7,)

    entry = repo.insert(ConfigEntry(key="retention", value="5"))

    sql = " ".join(cursor.execute.call_args.args[0].split())
    assert "ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value" in sql
    assert sql.endswith("RETURNING id")
    assert entry.id == 7


def test_update_commits(repo, cursor, conn) -> None:
    repo.update(ConfigEntry(key="filechmod", value="0640", id=12))

    assert cursor.execute.call_args.args[1] == ("0640", "filechmod")
    conn.commit.assert_called_once()


def test_failed_write_rolls_back_and_raises(repo, cursor, conn, postgres) -> None:
    cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

    with pytest.raises(psycopg2.OperationalError):
        repo.update(ConfigEntry(key="retention", value="1"))

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    postgres.put_connection.assert_called_once_with(conn)


def test_ensure_table_exists(repo, cursor, conn, postgres) -> None:
    repo.ensure_table_exists()

    assert "CREATE TABLE IF NOT EXISTS config" in cursor.execute.call_args.args[0]
    conn.commit.assert_called_once()
    postgres.put_connection.assert_called_once_with(conn)
