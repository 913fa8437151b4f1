"""
Speech Synthesis Service
========================

Narrates text with the selected engine and voice.
"""

import logging
from typing import Optional, Dict, Any

from ..core.exceptions import ValidationError, MalformedResponseError
from ..core.security import sanitize_speech_text, MAX_SPEECH_TEXT_LENGTH
from ..models.audio import GeneratedAudio
from .base import BaseGenerationService
from .factory import register_capability

logger = logging.getLogger(__name__)


@register_capability("speech_synthesis")
class SpeechSynthesisService(BaseGenerationService):
    """Client for the speech synthesis capability."""

    def __init__(self, *args, max_text_length: int = MAX_SPEECH_TEXT_LENGTH, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_text_length = max_text_length

    @property
    def capability_name(self) -> str:
        return "speech_synthesis"

    def build_payload(
        self,
        text: str,
        voice_settings: Dict[str, Any],
        audio_settings: Dict[str, Any],
        ssml: bool = False,
    ) -> Dict[str, Any]:
        """
        Build the request body, sanitizing the text.

        Raises:
            ValidationError: If nothing speakable is left after sanitizing
        """
        sanitized = sanitize_speech_text(text, max_length=self.max_text_length)
        if not sanitized:
            raise ValidationError(
                "Narration text cannot be empty",
                field="text",
                constraint="non-empty",
            )
        return {
            "engine": voice_settings.get("engine"),
            "voice_settings": dict(voice_settings),
            "audio_settings": dict(audio_settings),
            "text": sanitized,
            "ssml_enabled": bool(ssml),
        }

    async def synthesize(
        self,
        text: str,
        voice_settings: Dict[str, Any],
        audio_settings: Dict[str, Any],
        ssml: bool = False,
    ) -> GeneratedAudio:
        """
        Synthesize narration.

        Args:
            text: Narration text (truncated and sanitized before sending)
            voice_settings: language_code, voice_id, engine, speech_rate
            audio_settings: sample_rate
            ssml: Whether the text is SSML markup

        Returns:
            GeneratedAudio with the track URL
        """
        payload = self.build_payload(text, voice_settings, audio_settings, ssml=ssml)
        data = await self._post(payload)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Speech synthesis response is not an object",
                capability=self.capability_name,
            )

        audio_url = self._require(data, "audio_url")
        audio = GeneratedAudio(url=str(audio_url), duration=self._parse_duration(data.get("duration")))
        logger.info(f"Synthesized audio: {audio.url}")
        return audio

    @staticmethod
    def _parse_duration(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
