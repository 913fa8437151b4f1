"""
Logging Setup
=============

Applies the logging section of the configuration for command-line entry points.
"""

import logging
from typing import Optional

from ..core.config import LoggingConfig


def configure_logging(config: Optional[LoggingConfig] = None, verbose: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        config: Logging section of the configuration
        verbose: Force DEBUG level
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level)
    logging.basicConfig(level=level, format=config.format, force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
