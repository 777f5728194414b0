"""
Typed settings backed by string rows.

Every persisted value is a string. The functions here are the codecs
between those strings and bool/int/enum values, and the ``Setting``
descriptors declare one named setting each (name, type, default).
Declaring a setting on a class registers it in the class settings table,
which bulk operations iterate instead of inspecting properties.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from src.domain.config import ConfigConversionError

if TYPE_CHECKING:
    from src.services.config_service import ConfigService

E = TypeVar("E", bound=Enum)

_INT_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")


def enum_to_string(value: Enum) -> str:
    """Stored form of an enum member: lower-case name without underscores."""
    return value.name.replace("_", "").lower()


def format_value(value: Any) -> str:
    """Convert a typed value to its stored string form."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, Enum):
        return enum_to_string(value)
    return str(value)


def parse_bool(key: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ConfigConversionError(key, value, "bool")


def parse_int(key: str, value: str) -> int:
    if not _INT_PATTERN.match(value):
        raise ConfigConversionError(key, value, "int")
    return int(value)


def parse_enum(key: str, value: str, enum_type: type[E]) -> E:
    """Parse enum by member name (case and underscores ignored) or by value."""
    wanted = value.strip().replace("_", "").lower()
    for member in enum_type:
        if enum_to_string(member) == wanted:
            return member

    if _INT_PATTERN.match(value):
        number = int(value)
        for member in enum_type:
            if member.value == number:
                return member

    raise ConfigConversionError(key, value, enum_type.__name__)


class Setting(ABC):
    """Base descriptor for one named setting."""

    type_name = "str"

    def __init__(self, name: str, default: Any) -> None:
        self.name = name
        self.default = default
        self.attr: str | None = None

    def __set_name__(self, owner: type, attr: str) -> None:
        self.attr = attr
        if "settings_table" not in owner.__dict__:
            # Наследуем объявления базового класса, но не мутируем их
            inherited = getattr(owner, "settings_table", {})
            owner.settings_table = dict(inherited)  # type: ignore[attr-defined]
        owner.settings_table[self.name.lower()] = self  # type: ignore[attr-defined]

    def __get__(self, instance: "ConfigService | None", owner: type) -> Any:
        if instance is None:
            return self
        return self.read(instance)

    def __set__(self, instance: "ConfigService", value: Any) -> None:
        self.write(instance, value)

    @abstractmethod
    def read(self, service: "ConfigService") -> Any: ...

    @abstractmethod
    def coerce(self, value: Any) -> Any:
        """Convert an incoming value (typed or string) to the setting type."""

    def write(self, service: "ConfigService", value: Any) -> None:
        service.set_value(self.name, self.coerce(value))

    def to_string(self, value: Any) -> str:
        return format_value(self.coerce(value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, default={self.default!r})"


class StrSetting(Setting):
    def __init__(self, name: str, default: str = "", trim: str | None = None) -> None:
        super().__init__(name, default)
        self.trim = trim

    def read(self, service: "ConfigService") -> str:
        return self._trim(service.get_value(self.name, self.default))

    def coerce(self, value: Any) -> str:
        if value is None:
            raise ConfigConversionError(self.name, value, self.type_name)
        return self._trim(format_value(value))

    def _trim(self, value: str) -> str:
        return value.strip(self.trim) if self.trim else value


class BoolSetting(Setting):
    type_name = "bool"

    def __init__(self, name: str, default: bool = False) -> None:
        super().__init__(name, default)

    def read(self, service: "ConfigService") -> bool:
        return service.get_value_boolean(self.name, self.default)

    def coerce(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return parse_bool(self.name, value)
        raise ConfigConversionError(self.name, value, self.type_name)


class IntSetting(Setting):
    type_name = "int"

    def __init__(self, name: str, default: int = 0) -> None:
        super().__init__(name, default)

    def read(self, service: "ConfigService") -> int:
        return service.get_value_int(self.name, self.default)

    def coerce(self, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            return parse_int(self.name, value)
        raise ConfigConversionError(self.name, value, self.type_name)


class EnumSetting(Setting):
    def __init__(self, name: str, default: Enum) -> None:
        super().__init__(name, default)
        self.enum_type = type(default)
        self.type_name = self.enum_type.__name__

    def read(self, service: "ConfigService") -> Enum:
        return service.get_value_enum(self.name, self.default)

    def coerce(self, value: Any) -> Enum:
        if isinstance(value, self.enum_type):
            return value
        if isinstance(value, str):
            return parse_enum(self.name, value, self.enum_type)
        if isinstance(value, int) and not isinstance(value, bool):
            return parse_enum(self.name, str(value), self.enum_type)
        raise ConfigConversionError(self.name, value, self.type_name)
