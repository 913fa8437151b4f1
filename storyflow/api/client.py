"""
Generation Client
=================

Single entry point to the four remote generation capabilities.
"""

import logging
from typing import Optional, List, Dict, Any

import httpx

from ..core.config import ServicesConfig, AudioConfig
from ..models.audio import GeneratedAudio
from ..models.scene import Scene, ScenePreferences, ImageSettings
from ..models.script import ScriptAnalysis
from .factory import get_service

logger = logging.getLogger(__name__)


class GenerationClient:
    """
    Issues single-attempt requests to the generation capabilities.

    Every operation performs one request/response round trip. Failures are
    raised as TransportError, ServerRejectedError or MalformedResponseError
    and input problems as ValidationError; nothing is retried here.

    Usage:
        async with GenerationClient.from_config(get_config()) as client:
            analysis = await client.analyze_script(story)
    """

    def __init__(
        self,
        services: Optional[ServicesConfig] = None,
        max_text_length: int = 1000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            services: Endpoints, API key and timeout
            max_text_length: Characters of narration sent to speech synthesis
            transport: Custom httpx transport shared by all services
        """
        services = services or ServicesConfig()
        common = {
            "api_key": services.api_key,
            "timeout": float(services.timeout),
            "transport": transport,
        }
        self._script = get_service(
            "script_analysis", endpoint=services.script_analysis_url, **common
        )
        self._scenes = get_service(
            "scene_generation", endpoint=services.scene_generation_url, **common
        )
        self._images = get_service(
            "scene_image", endpoint=services.scene_image_url, **common
        )
        self._speech = get_service(
            "speech_synthesis",
            endpoint=services.speech_synthesis_url,
            max_text_length=max_text_length,
            **common,
        )

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "GenerationClient":
        """Build a client from a full Config."""
        audio: AudioConfig = config.audio
        return cls(
            services=config.services,
            max_text_length=audio.max_text_length,
            transport=transport,
        )

    async def analyze_script(self, story_text: str) -> ScriptAnalysis:
        return await self._script.analyze(story_text)

    async def generate_scenes(
        self,
        story_text: str,
        analysis: ScriptAnalysis,
        preferences: ScenePreferences,
    ) -> List[Scene]:
        return await self._scenes.generate(story_text, analysis, preferences)

    async def generate_scene_image(self, scene: Scene, image_settings: ImageSettings) -> str:
        return await self._images.generate(scene, image_settings)

    async def synthesize_audio(
        self,
        text: str,
        voice_settings: Dict[str, Any],
        audio_settings: Dict[str, Any],
        ssml: bool = False,
    ) -> GeneratedAudio:
        return await self._speech.synthesize(text, voice_settings, audio_settings, ssml=ssml)

    async def close(self) -> None:
        """Close every service's HTTP client."""
        for service in (self._script, self._scenes, self._images, self._speech):
            await service.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
