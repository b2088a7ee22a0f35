"""
Environment helpers for config defaults.
"""

from __future__ import annotations

import os
from logging import getLogger
from typing import Any, Dict

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _coerce(raw: str, annotation: Any) -> Any:
    kind = annotation if isinstance(annotation, str) else getattr(annotation, "__name__", "")
    if kind == "bool":
        return raw.strip().lower() in _TRUE_VALUES
    if kind == "int":
        return int(raw)
    if kind == "float":
        return float(raw)
    return raw


def read_env_defaults(env_map: Dict[str, str], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Read environment overrides for the dataclass fields in ``env_map``.

    Values are coerced to the field's annotated type. Unparseable values
    are logged and ignored so the dataclass default applies.
    """
    defaults: Dict[str, Any] = {}
    for attr, env_name in env_map.items():
        raw = os.environ.get(env_name)
        if raw is None or attr not in fields:
            continue
        try:
            defaults[attr] = _coerce(raw, fields[attr].type)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_name}: {raw!r}")
    return defaults
