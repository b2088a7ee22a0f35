"""
Logging Module

Configures the ``flowdesk`` logger hierarchy. Modules log through
``logging.getLogger(__name__)``; this only sets level and handler.
"""

import logging
from typing import Optional, Union

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """Attach a stream handler to the ``flowdesk`` logger and set its level.

    ``level`` defaults to ``WorkflowBuilderConfig.log_level``. Calling this
    more than once does not stack handlers.
    """
    if level is None:
        from flowdesk.config import get_config
        level = get_config("workflow_builder").log_level

    logger = logging.getLogger("flowdesk")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not any(getattr(h, "_flowdesk", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._flowdesk = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(f"flowdesk.{name}" if name else "flowdesk")


__all__ = ["setup_logging", "get_logger"]
