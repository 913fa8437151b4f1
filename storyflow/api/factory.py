"""
Service Factory
===============

Registry of the remote generation capabilities.
"""

import logging
from typing import List, Dict, Type

from .base import BaseGenerationService

logger = logging.getLogger(__name__)

# Registry of available capability services
_SERVICES: Dict[str, Type[BaseGenerationService]] = {}


def register_capability(name: str):
    """Decorator to register a capability service class."""
    def decorator(cls: Type[BaseGenerationService]):
        _SERVICES[name.lower()] = cls
        return cls
    return decorator


def get_service(name: str, **kwargs) -> BaseGenerationService:
    """
    Get a capability service instance.

    Args:
        name: Capability name ('script_analysis', 'scene_generation',
            'scene_image', 'speech_synthesis')
        **kwargs: Service constructor arguments (endpoint, api_key, timeout, transport)

    Returns:
        Configured service instance

    Raises:
        ValueError: If the capability name is not recognized
    """
    name_lower = name.lower()

    if name_lower not in _SERVICES:
        if name_lower == "script_analysis":
            from .script import ScriptAnalysisService
        elif name_lower == "scene_generation":
            from .scenes import SceneGenerationService
        elif name_lower == "scene_image":
            from .images import SceneImageService
        elif name_lower == "speech_synthesis":
            from .speech import SpeechSynthesisService
        else:
            raise ValueError(f"Unknown capability: {name}")

    service_class = _SERVICES.get(name_lower)
    if service_class is None:
        raise ValueError(f"Capability '{name}' not registered")

    return service_class(**kwargs)


def list_capabilities() -> List[str]:
    """List all available capability names."""
    from . import script, scenes, images, speech  # noqa: F401

    return sorted(_SERVICES.keys())
