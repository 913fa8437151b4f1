"""
Audio Models
============

Speech synthesis preferences and the generated narration.
"""

from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

from ..core.exceptions import ValidationError
from .voices import (
    AudioEngine,
    default_selection,
    default_voice,
    engine_voices,
    is_valid_selection,
)


VALID_SAMPLE_RATES = (8000, 16000, 22050, 24000)
MIN_SPEECH_RATE = 20
MAX_SPEECH_RATE = 200


@dataclass(frozen=True)
class AudioPreferences:
    """
    Voice and audio settings for narration.

    ``language_code`` and ``voice_id`` always form a combination advertised
    for ``engine``. Use the ``with_*`` methods to change a selection; they
    reset dependent fields so the combination cannot fall out of sync.
    """

    engine: AudioEngine = AudioEngine.GENERATIVE
    language_code: str = "en-US"
    voice_id: str = "Ruth"
    sample_rate: int = 24000
    speech_rate: int = 100
    ssml: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.engine, AudioEngine):
            raise ValidationError("engine must be an AudioEngine", field="engine", value=self.engine)
        if not is_valid_selection(self.engine, self.language_code, self.voice_id):
            raise ValidationError(
                f"Voice {self.voice_id} ({self.language_code}) is not available for engine {self.engine.value}",
                field="voice_id",
                value=self.voice_id,
            )
        if self.sample_rate not in VALID_SAMPLE_RATES:
            raise ValidationError(
                f"Invalid sample rate: {self.sample_rate}",
                field="sample_rate",
                value=self.sample_rate,
                constraint=f"one of {VALID_SAMPLE_RATES}",
            )
        if isinstance(self.speech_rate, bool) or not isinstance(self.speech_rate, int):
            raise ValidationError("speech_rate must be an integer", field="speech_rate", value=self.speech_rate)
        if not MIN_SPEECH_RATE <= self.speech_rate <= MAX_SPEECH_RATE:
            raise ValidationError(
                f"speech_rate must be {MIN_SPEECH_RATE}-{MAX_SPEECH_RATE}, got {self.speech_rate}",
                field="speech_rate",
                value=self.speech_rate,
            )

    @classmethod
    def for_engine(cls, engine, **kwargs) -> "AudioPreferences":
        """Preferences with the engine's default language and voice."""
        engine = AudioEngine.parse(engine)
        language_code, voice_id = default_selection(engine)
        return cls(engine=engine, language_code=language_code, voice_id=voice_id, **kwargs)

    def with_engine(self, engine) -> "AudioPreferences":
        """Switch engine; language and voice reset to the engine's first combination."""
        engine = AudioEngine.parse(engine)
        language_code, voice_id = default_selection(engine)
        return replace(self, engine=engine, language_code=language_code, voice_id=voice_id)

    def with_language(self, language_code: str) -> "AudioPreferences":
        """Switch language; the voice resets to the language's first voice."""
        return replace(
            self,
            language_code=language_code,
            voice_id=default_voice(self.engine, language_code),
        )

    def with_voice(self, voice_id: str) -> "AudioPreferences":
        if not any(v.voice_id == voice_id for v in engine_voices(self.engine, self.language_code)):
            raise ValidationError(
                f"Voice {voice_id} is not available for {self.language_code}",
                field="voice_id",
                value=voice_id,
            )
        return replace(self, voice_id=voice_id)

    def with_options(self, **options) -> "AudioPreferences":
        """Change sample_rate, speech_rate or ssml."""
        unknown = set(options) - {"sample_rate", "speech_rate", "ssml"}
        if unknown:
            raise ValidationError(
                f"Unknown audio option: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        return replace(self, **options)

    def voice_settings(self) -> Dict[str, Any]:
        return {
            "language_code": self.language_code,
            "voice_id": self.voice_id,
            "engine": self.engine.value,
            "speech_rate": self.speech_rate,
        }

    def audio_settings(self) -> Dict[str, Any]:
        return {"sample_rate": self.sample_rate}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine.value,
            "language_code": self.language_code,
            "voice_id": self.voice_id,
            "sample_rate": self.sample_rate,
            "speech_rate": self.speech_rate,
            "ssml": self.ssml,
        }


@dataclass(frozen=True)
class GeneratedAudio:
    """A synthesized narration track."""

    url: str
    duration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "duration": self.duration}
