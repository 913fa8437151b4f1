"""
Core Module
===========

Core utilities, configuration, and exceptions for Storyflow.
"""

from .config import (
    Config,
    ServicesConfig,
    ImageConfig,
    AudioConfig,
    LoggingConfig,
    get_config,
    set_config,
    reset_config,
)
from .exceptions import (
    StoryflowError,
    ConfigurationError,
    ValidationError,
    GenerationError,
    TransportError,
    ServerRejectedError,
    MalformedResponseError,
    QuotaExceededError,
    RequestInProgressError,
    AudioStateError,
    SecurityError,
)
from .security import (
    PathValidator,
    sanitize_filename,
    sanitize_speech_text,
    redact_api_key,
    validate_url,
)

__all__ = [
    # Configuration
    "Config",
    "ServicesConfig",
    "ImageConfig",
    "AudioConfig",
    "LoggingConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Exceptions
    "StoryflowError",
    "ConfigurationError",
    "ValidationError",
    "GenerationError",
    "TransportError",
    "ServerRejectedError",
    "MalformedResponseError",
    "QuotaExceededError",
    "RequestInProgressError",
    "AudioStateError",
    "SecurityError",
    # Security
    "PathValidator",
    "sanitize_filename",
    "sanitize_speech_text",
    "redact_api_key",
    "validate_url",
]
