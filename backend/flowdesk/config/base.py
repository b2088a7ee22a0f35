"""
Configuration base — dataclass configs with environment defaults.

Every sub-config is a ``@dataclass`` deriving from ``BaseConfig`` and
registered with ``@register_config``. Field metadata (``ConfigField``)
describes each setting for settings screens; ``get_default_instance``
builds the config from environment variables listed in ``_ENV_MAP``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Dict, List, Optional, Type

logger = getLogger(__name__)


class FieldType(str, Enum):
    """Input widget type of a config field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    PATH = "path"


@dataclass
class ConfigField:
    """Metadata for a single configurable setting."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    required: bool = False
    placeholder: str = ""
    options: List[Dict[str, Any]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["field_type"] = self.field_type.value
        return data


@dataclass
class BaseConfig:
    """Base class for all registered configs."""

    _ENV_MAP = {}

    @classmethod
    def get_default_instance(cls) -> "BaseConfig":
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Registry ──

_CONFIG_CLASSES: Dict[str, Type[BaseConfig]] = {}
_CONFIG_INSTANCES: Dict[str, BaseConfig] = {}


def register_config(cls: Type[BaseConfig]) -> Type[BaseConfig]:
    """Class decorator: register a config dataclass by its config name."""
    name = cls.get_config_name()
    if name in _CONFIG_CLASSES:
        logger.warning(f"Config '{name}' registered twice; keeping the latest")
    _CONFIG_CLASSES[name] = cls
    return cls


def get_config(name: str) -> BaseConfig:
    """Return the cached instance of a registered config."""
    if name not in _CONFIG_INSTANCES:
        cls = _CONFIG_CLASSES.get(name)
        if cls is None:
            raise KeyError(f"Unknown config: {name}")
        _CONFIG_INSTANCES[name] = cls.get_default_instance()
    return _CONFIG_INSTANCES[name]


def reset_config_cache() -> None:
    """Drop cached instances so the next ``get_config`` re-reads the env."""
    _CONFIG_INSTANCES.clear()


def list_configs() -> List[Type[BaseConfig]]:
    return list(_CONFIG_CLASSES.values())
