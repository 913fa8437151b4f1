"""
Utilities
=========

Helper functions for Storyflow.
"""

from .downloads import download_asset
from .logging import configure_logging

__all__ = [
    "download_asset",
    "configure_logging",
]
