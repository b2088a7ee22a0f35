"""
Configuration Package.

Importing this package registers every sub-config.
"""

from flowdesk.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config,
    list_configs,
    register_config,
    reset_config_cache,
)
from flowdesk.config.sub_config.workflow_builder_config import WorkflowBuilderConfig

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config",
    "list_configs",
    "register_config",
    "reset_config_cache",
    "WorkflowBuilderConfig",
]
