"""Typed configuration service over the persisted config table."""

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, Protocol, TypeVar

from src.domain.config import (
    ConfigEntry,
    ConfigKey,
    FileDateType,
    InvalidConfigKeyError,
)
from src.logger.logger import get_logger
from src.logger.types import Category, param
from src.services.config_cache import ConfigCache
from src.services.typed_settings import (
    BoolSetting,
    EnumSetting,
    IntSetting,
    Setting,
    StrSetting,
    format_value,
    parse_bool,
    parse_enum,
    parse_int,
)

E = TypeVar("E", bound=Enum)


class PersistedConfigRepository(Protocol):
    """Persisted key-value store; keys passed in are always lower-case."""

    def get_all(self) -> list[ConfigEntry]: ...

    def get(self, key: str) -> ConfigEntry | None: ...

    def insert(self, entry: ConfigEntry) -> ConfigEntry:
        """Insert; a row created meanwhile under the same key is overwritten."""

    def update(self, entry: ConfigEntry) -> None: ...


class ChangeNotifier(Protocol):
    def publish_config_saved(self) -> None: ...


class SettingsDict(Mapping[str, Any]):
    """Read-only setting name -> value mapping with case-insensitive lookup."""

    def __init__(self, items: Mapping[str, Any]) -> None:
        self._items = dict(items)
        self._names = {name.lower(): name for name in self._items}

    def __getitem__(self, name: str) -> Any:
        return self._items[self._names[name.lower()]]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"SettingsDict({self._items!r})"


class ConfigService:
    """
    Typed access to configuration rows.

    Reads go through a whole-store cache loaded on first use. Every write
    goes straight to the repository and then drops the cache, so the next
    read reloads the full snapshot.

    Named settings are declared below as descriptors; each one registers
    itself in ``settings_table`` (lower-cased name -> Setting).
    """

    settings_table: dict[str, Setting]

    downloaded_episodes_folder = StrSetting(ConfigKey.DOWNLOADED_EPISODES_FOLDER.value)
    auto_unmonitor_previously_downloaded_episodes = BoolSetting(
        "AutoUnmonitorPreviouslyDownloadedEpisodes"
    )
    retention = IntSetting("Retention", 0)
    recycle_bin = StrSetting("RecycleBin", "")
    release_restrictions = StrSetting("ReleaseRestrictions", "", trim="\r\n")
    rss_sync_interval = IntSetting("RssSyncInterval", 15)
    auto_download_propers = BoolSetting("AutoDownloadPropers", True)
    auto_redownload_failed = BoolSetting("AutoRedownloadFailed", True)
    remove_failed_downloads = BoolSetting("RemoveFailedDownloads", True)
    enable_failed_download_handling = BoolSetting("EnableFailedDownloadHandling", True)
    create_empty_series_folders = BoolSetting("CreateEmptySeriesFolders", False)
    file_date = EnumSetting("FileDate", FileDateType.NONE)
    download_client_working_folders = StrSetting(
        "DownloadClientWorkingFolders", "_UNPACK_|_FAILED_"
    )
    set_permissions_linux = BoolSetting("SetPermissionsLinux", False)
    file_chmod = StrSetting("FileChmod", "0644")
    folder_chmod = StrSetting("FolderChmod", "0755")
    chown_user = StrSetting("ChownUser", "")
    chown_group = StrSetting("ChownGroup", "")

    def __init__(
        self,
        repository: PersistedConfigRepository,
        notifier: ChangeNotifier,
        cache: ConfigCache | None = None,
    ) -> None:
        """
        Initialize ConfigService.

        Args:
            repository: Persisted config store
            notifier: Receives one notification per bulk save
            cache: Cache instance; a fresh empty one by default
        """
        self.repository = repository
        self.notifier = notifier
        self.cache = cache if cache is not None else ConfigCache()
        self.logger = get_logger().with_category(Category.CONFIG)

    def all(self) -> list[ConfigEntry]:
        """All persisted rows, unfiltered."""
        return self.repository.get_all()

    def all_with_defaults(self) -> SettingsDict:
        """Every named setting with its current (possibly default) value."""
        return SettingsDict(
            {setting.name: setting.read(self) for setting in self.settings_table.values()}
        )

    def save_config_dictionary(self, values: Mapping[str, Any]) -> list[str]:
        """
        Apply a batch of named settings, writing only those that changed.

        Unknown names are ignored. One config_saved notification is
        published per call, even when nothing was written.

        Returns:
            Names of the settings that were written
        """
        # Сначала конвертируем всё: ошибка в любом значении не должна
        # оставить часть настроек записанной
        incoming: list[tuple[Setting, Any]] = []
        for name, new_value in values.items():
            setting = self.settings_table.get(name.lower())
            if setting is None:
                self.logger.debug("Skipping unknown setting", param("name", name))
                continue
            incoming.append((setting, setting.coerce(new_value)))

        current = self.all_with_defaults()
        changed: list[str] = []

        for setting, new_value in incoming:
            if setting.to_string(new_value) == setting.to_string(current[setting.name]):
                continue

            setting.write(self, new_value)
            changed.append(setting.name)

        self.logger.info(
            "Config saved",
            param("submitted", len(values)),
            param("changed", changed),
        )
        self.notifier.publish_config_saved()
        return changed

    def get_value(self, key: str, default_value: Any = "", persist: bool = False) -> str:
        """
        Read a raw string value.

        A missing or empty stored value yields the default's string form;
        with persist=True that default is also written to the store.

        Raises:
            InvalidConfigKeyError: If key is empty or whitespace-only
        """
        key = self._normalize_key(key)

        values = self.cache.ensure(self.repository.get_all)
        stored = values.get(key)
        if stored:
            return stored

        default = format_value(default_value)
        self.logger.trace(
            f"Unable to find config key '{key}'",
            param("key", key),
            param("default", default),
        )

        if persist:
            self.set_value(key, default)
        return default

    def get_value_boolean(self, key: str, default_value: bool = False) -> bool:
        return parse_bool(key, self.get_value(key, default_value))

    def get_value_int(self, key: str, default_value: int = 0) -> int:
        return parse_int(key, self.get_value(key, default_value))

    def get_value_enum(self, key: str, default_value: E) -> E:
        return parse_enum(key, self.get_value(key, default_value), type(default_value))

    def set_value(self, key: str, value: str | bool | int | Enum) -> None:
        """
        Write a value, inserting the row if needed, then drop the cache.

        Raises:
            InvalidConfigKeyError: If key is empty or whitespace-only
        """
        key = self._normalize_key(key)
        value = format_value(value)

        self.logger.trace(
            "Writing setting",
            param("key", key),
            param("value", value),
        )

        entry = self.repository.get(key)
        if entry is None:
            self.repository.insert(ConfigEntry(key=key, value=value))
        else:
            entry.value = value
            self.repository.update(entry)

        self.clear_cache()

    def clear_cache(self) -> None:
        self.cache.clear()

    @staticmethod
    def _normalize_key(key: str) -> str:
        if not key or not key.strip():
            raise InvalidConfigKeyError(key)
        return key.lower()
