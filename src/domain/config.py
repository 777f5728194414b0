"""Configuration domain models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass
class ConfigEntry:
    """
    Single persisted configuration row.

    Values are always stored as strings, whatever the logical type
    of the setting. Keys are lower-case.
    """

    key: str
    value: str
    id: int | None = None  # Set by database


class ConfigKey(str, Enum):
    """Keys referenced by symbolic name rather than by literal."""

    DOWNLOADED_EPISODES_FOLDER = "DownloadedEpisodesFolder"


class FileDateType(Enum):
    """Which date is stamped on imported files."""

    NONE = 0
    LOCAL_AIR_DATE = 1
    UTC_AIR_DATE = 2


class InvalidConfigKeyError(ValueError):
    """Raised when a config key is empty or whitespace-only."""

    def __init__(self, key: str | None) -> None:
        super().__init__(f"Config key must not be empty: {key!r}")
        self.key = key


class ConfigConversionError(ValueError):
    """Raised when a stored value cannot be converted to the setting type."""

    def __init__(self, key: str, value: Any, target: str) -> None:
        super().__init__(f"Cannot convert config value {value!r} of key '{key}' to {target}")
        self.key = key
        self.value = value
        self.target = target
