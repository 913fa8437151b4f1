"""
API Integration Layer
=====================

Clients for the remote generation capabilities.

Capabilities:
- script_analysis: story text -> ScriptAnalysis
- scene_generation: story + analysis + preferences -> scenes
- scene_image: scene -> image URL
- speech_synthesis: narration text -> audio URL

Usage:
    from storyflow.api import GenerationClient

    async with GenerationClient() as client:
        analysis = await client.analyze_script("Once upon a time...")
"""

from .base import BaseGenerationService
from .client import GenerationClient
from .factory import get_service, list_capabilities, register_capability

__all__ = [
    "BaseGenerationService",
    "GenerationClient",
    "get_service",
    "list_capabilities",
    "register_capability",
]
