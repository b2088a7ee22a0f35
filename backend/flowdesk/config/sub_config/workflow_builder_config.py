"""
Workflow Builder Configuration.

Controls where named workflows are persisted, the interchange document
header, the simulated run delay, and the display locale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from flowdesk.config.base import BaseConfig, ConfigField, FieldType, register_config
from flowdesk.config.sub_config.env_utils import read_env_defaults

LOCALE_OPTIONS = [
    {"value": "en", "label": "English"},
    {"value": "fr", "label": "Français"},
]


@register_config
@dataclass
class WorkflowBuilderConfig(BaseConfig):
    """Workflow builder storage, export, and run settings."""

    storage_path: str = "workflows.json"
    storage_key: str = "workflows"
    document_version: str = "1.0.0"
    exported_by: str = "Workflow Builder"
    run_delay_seconds: float = 3.0
    locale: str = "en"
    log_level: str = "INFO"

    _ENV_MAP = {
        "storage_path": "FLOWDESK_WORKFLOW_STORAGE",
        "storage_key": "FLOWDESK_WORKFLOW_STORAGE_KEY",
        "run_delay_seconds": "FLOWDESK_RUN_DELAY",
        "locale": "FLOWDESK_LOCALE",
        "log_level": "FLOWDESK_LOG_LEVEL",
    }

    @classmethod
    def get_default_instance(cls) -> "WorkflowBuilderConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "workflow_builder"

    @classmethod
    def get_display_name(cls) -> str:
        return "Workflow Builder"

    @classmethod
    def get_description(cls) -> str:
        return "Workflow storage location, export header, run delay and locale."

    @classmethod
    def get_category(cls) -> str:
        return "workflow"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="storage_path",
                field_type=FieldType.PATH,
                label="Storage File",
                description="JSON file holding every saved workflow",
                default="workflows.json",
                group="storage",
            ),
            ConfigField(
                name="storage_key",
                field_type=FieldType.STRING,
                label="Storage Key",
                description="Key under which the workflow list is stored",
                default="workflows",
                group="storage",
            ),
            ConfigField(
                name="document_version",
                field_type=FieldType.STRING,
                label="Document Version",
                description="Version written into exported documents",
                default="1.0.0",
                group="export",
            ),
            ConfigField(
                name="exported_by",
                field_type=FieldType.STRING,
                label="Exported By",
                description="Producer name written into export metadata",
                default="Workflow Builder",
                group="export",
            ),
            ConfigField(
                name="run_delay_seconds",
                field_type=FieldType.NUMBER,
                label="Simulated Run Delay",
                description="Seconds before a simulated run reports completion",
                default=3.0,
                min_value=0,
                max_value=60,
                group="run",
            ),
            ConfigField(
                name="locale",
                field_type=FieldType.SELECT,
                label="Locale",
                description="Language for node labels and validation messages",
                default="en",
                options=LOCALE_OPTIONS,
                group="display",
            ),
            ConfigField(
                name="log_level",
                field_type=FieldType.SELECT,
                label="Log Level",
                default="INFO",
                options=[
                    {"value": lvl, "label": lvl}
                    for lvl in ("DEBUG", "INFO", "WARNING", "ERROR")
                ],
                group="display",
            ),
        ]
