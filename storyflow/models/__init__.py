"""
Artifact Models
===============

Data structures for every artifact produced or edited in a session.
"""

from .script import Character, Setting, ScriptAnalysis
from .scene import (
    Scene,
    ScenePreferences,
    ImageSettings,
    Genre,
    SceneStyle,
    Tone,
    Pacing,
    MAX_IMAGES_PER_SCENE,
)
from .voices import AudioEngine, Voice, EngineLanguage, VOICE_ENGINES
from .audio import AudioPreferences, GeneratedAudio
from .captions import CaptionSettings
from .stage import Stage

__all__ = [
    "Character",
    "Setting",
    "ScriptAnalysis",
    "Scene",
    "ScenePreferences",
    "ImageSettings",
    "Genre",
    "SceneStyle",
    "Tone",
    "Pacing",
    "MAX_IMAGES_PER_SCENE",
    "AudioEngine",
    "Voice",
    "EngineLanguage",
    "VOICE_ENGINES",
    "AudioPreferences",
    "GeneratedAudio",
    "CaptionSettings",
    "Stage",
]
