"""Central logging configuration for the converter."""
from __future__ import annotations

import logging
import os
from typing import Optional

_LEVEL_ENV = "MD2DOCX_LOG_LEVEL"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _default_level() -> int:
    name = os.getenv(_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger, configuring the root handler on first use.

    The level defaults to INFO and can be overridden with ``MD2DOCX_LOG_LEVEL``.
    """
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_default_level(), format=_FORMAT)
    return logger
