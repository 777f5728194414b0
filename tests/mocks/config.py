"""In-memory doubles for the config repository and change notifier."""

from __future__ import annotations

import threading

from src.domain.config import ConfigEntry


class InMemoryConfigRepository:
    """Dict-backed repository that counts calls like a real store would see them."""

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self._rows: dict[str, ConfigEntry] = {}
        self._lock = threading.Lock()
        self.get_all_calls = 0
        self.inserts: list[ConfigEntry] = []
        self.updates: list[ConfigEntry] = []
        for key, value in (entries or {}).items():
            self._store(ConfigEntry(key=key, value=value))

    @property
    def writes(self) -> int:
        return len(self.inserts) + len(self.updates)

    def get_all(self) -> list[ConfigEntry]:
        with self._lock:
            self.get_all_calls += 1
            return [ConfigEntry(e.key, e.value, e.id) for e in self._rows.values()]

    def get(self, key: str) -> ConfigEntry | None:
        with self._lock:
            entry = self._rows.get(key)
            return None if entry is None else ConfigEntry(entry.key, entry.value, entry.id)

    def insert(self, entry: ConfigEntry) -> ConfigEntry:
        """Upsert on key, like INSERT ... ON CONFLICT (key) DO UPDATE."""
        with self._lock:
            self.inserts.append(entry)
            existing = self._rows.get(entry.key)
            if existing is None:
                return self._store(entry)
            existing.value = entry.value
            entry.id = existing.id
            return entry

    def update(self, entry: ConfigEntry) -> None:
        with self._lock:
            self.updates.append(entry)
            self._rows[entry.key].value = entry.value

    def row_count(self) -> int:
        return len(self._rows)

    def raw(self, key: str) -> str | None:
        entry = self._rows.get(key)
        return None if entry is None else entry.value

    def _store(self, entry: ConfigEntry) -> ConfigEntry:
        entry.id = len(self._rows) + 1
        self._rows[entry.key] = ConfigEntry(entry.key, entry.value, entry.id)
        return entry


class RecordingNotifier:
    def __init__(self) -> None:
        self.published = 0

    def publish_config_saved(self) -> None:
        self.published += 1

