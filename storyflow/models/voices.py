"""
Voice Catalog
=============

Lookup table of speech engines, the languages each engine advertises and the
voices available for each language. Audio preferences are validated against
this table, and changing a parent selection (engine, then language) resets the
children to the first valid entry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from ..core.exceptions import ValidationError


class AudioEngine(Enum):
    """Speech synthesis engines, from most to least expressive."""

    GENERATIVE = "generative"
    LONG_FORM = "long-form"
    NEURAL = "neural"
    STANDARD = "standard"

    @classmethod
    def parse(cls, value) -> "AudioEngine":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(e.value for e in cls)
            raise ValidationError(
                f"Invalid audio engine: {value}",
                field="engine",
                value=value,
                constraint=f"one of {allowed}",
            )


@dataclass(frozen=True)
class Voice:
    voice_id: str
    name: str
    gender: str
    bilingual: bool = False


@dataclass(frozen=True)
class EngineLanguage:
    code: str
    name: str
    region: str
    voices: Tuple[Voice, ...]


def _voices(*entries) -> Tuple[Voice, ...]:
    return tuple(Voice(voice_id=v, name=v, gender=g) for v, g in entries)


_ADITI = Voice(voice_id="Aditi", name="Aditi", gender="female", bilingual=True)


VOICE_ENGINES: Dict[AudioEngine, Tuple[EngineLanguage, ...]] = {
    AudioEngine.GENERATIVE: (
        EngineLanguage("en-US", "English", "United States", _voices(
            ("Ruth", "female"), ("Amy", "female"), ("Matthew", "male"),
            ("Stephen", "male"), ("Olivia", "female"), ("Joanna", "female"),
            ("Danielle", "female"),
        )),
        EngineLanguage("es-ES", "Spanish", "Spain", _voices(
            ("Pedro", "male"), ("Andrés", "male"), ("Sergio", "male"),
        )),
        EngineLanguage("fr-FR", "French", "France", _voices(
            ("Léa", "female"), ("Rémi", "male"),
        )),
        EngineLanguage("hi-IN", "Hindi", "India", _voices(("Kajal", "female"))),
        EngineLanguage("it-IT", "Italian", "Italy", _voices(("Bianca", "female"))),
    ),
    AudioEngine.LONG_FORM: (
        EngineLanguage("en-US", "English", "United States", _voices(
            ("Patrick", "male"), ("Ruth", "female"), ("Danielle", "female"),
            ("Gregory", "male"),
        )),
        EngineLanguage("es-ES", "Spanish", "Spain", _voices(
            ("Alba", "female"), ("Raúl", "male"),
        )),
    ),
    AudioEngine.NEURAL: (
        EngineLanguage("en-US", "English", "United States", _voices(
            ("Joanna", "female"), ("Matthew", "male"), ("Danielle", "female"),
            ("Gregory", "male"),
        )),
        EngineLanguage("en-IN", "English", "India", (_ADITI,)),
        EngineLanguage("hi-IN", "Hindi", "India", (_ADITI,)),
        EngineLanguage("es-ES", "Spanish", "Spain", _voices(("Lucia", "female"))),
        EngineLanguage("tr-TR", "Turkish", "Turkey", _voices(("Burcu", "female"))),
    ),
    AudioEngine.STANDARD: (
        EngineLanguage("en-US", "English", "United States", _voices(
            ("Joanna", "female"), ("Matthew", "male"), ("Ivy", "female"),
            ("Justin", "male"), ("Kendra", "female"),
        )),
    ),
}


def engine_languages(engine) -> Tuple[EngineLanguage, ...]:
    """Languages advertised for an engine, in display order."""
    return VOICE_ENGINES[AudioEngine.parse(engine)]


def language_codes(engine) -> List[str]:
    return [lang.code for lang in engine_languages(engine)]


def engine_voices(engine, language_code: str) -> Tuple[Voice, ...]:
    """
    Voices of an engine for one language.

    Raises:
        ValidationError: If the engine does not advertise the language
    """
    for lang in engine_languages(engine):
        if lang.code == language_code:
            return lang.voices
    raise ValidationError(
        f"Language {language_code} is not available for engine {AudioEngine.parse(engine).value}",
        field="language_code",
        value=language_code,
    )


def default_language(engine) -> str:
    return engine_languages(engine)[0].code


def default_voice(engine, language_code: str) -> str:
    return engine_voices(engine, language_code)[0].voice_id


def default_selection(engine) -> Tuple[str, str]:
    """First valid (language_code, voice_id) pair advertised for an engine."""
    language = default_language(engine)
    return language, default_voice(engine, language)


def is_valid_selection(engine, language_code: str, voice_id: str) -> bool:
    """Whether the voice is advertised for the language under the engine."""
    try:
        voices = engine_voices(engine, language_code)
    except ValidationError:
        return False
    return any(v.voice_id == voice_id for v in voices)
