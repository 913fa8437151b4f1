"""
Artifact Store
==============

Canonical in-memory state of one production session.

The store is the single owner of every artifact. Other components read from
it freely but change it only through the named operations below. Artifact
records are frozen dataclasses, so every edit is a copy-on-write replacement
of one list element and untouched elements keep their identity.
"""

import logging
from typing import Optional, List, Tuple, Dict, Any

from ..core.exceptions import ValidationError
from ..models.audio import AudioPreferences
from ..models.captions import CaptionSettings
from ..models.scene import Scene, ScenePreferences
from ..models.script import Character, ScriptAnalysis
from .failures import GenerationFailure

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Holds the script text, script analysis, scenes, scene preferences, audio
    preferences, caption settings and the latest failure per request key.
    """

    def __init__(
        self,
        audio_preferences: Optional[AudioPreferences] = None,
        caption_settings: Optional[CaptionSettings] = None,
    ):
        self._script_text = ""
        self._analysis: Optional[ScriptAnalysis] = None
        self._scenes: List[Scene] = []
        self._scene_preferences = ScenePreferences()
        self._audio_preferences = audio_preferences or AudioPreferences()
        self._caption_settings = caption_settings or CaptionSettings()
        self._errors: Dict[str, GenerationFailure] = {}

        # Bumped on every bulk scene replacement
        self._scenes_revision = 0
        self._scenes_edited = False

    # -------------------------------------------------------------------------
    # Script
    # -------------------------------------------------------------------------

    @property
    def script_text(self) -> str:
        return self._script_text

    def set_script_text(self, text: str) -> None:
        self._script_text = text or ""

    @property
    def analysis(self) -> Optional[ScriptAnalysis]:
        return self._analysis

    @property
    def has_analysis(self) -> bool:
        return self._analysis is not None

    def set_analysis(self, analysis: ScriptAnalysis) -> None:
        """Replace the whole analysis."""
        self._analysis = analysis
        logger.debug(f"Script analysis set: {analysis.title}")

    @property
    def characters(self) -> Tuple[Character, ...]:
        return self._analysis.characters if self._analysis else ()

    def add_character(self, character: Character) -> int:
        """
        Append a character to the analysis.

        Returns:
            Index of the new character

        Raises:
            ValidationError: If there is no analysis or the name is empty
        """
        analysis = self._require_analysis()
        character.validate()
        characters = analysis.characters + (character,)
        self._analysis = analysis.with_characters(characters)
        return len(characters) - 1

    def edit_character(self, index: int, field: str, value: str) -> Character:
        """Replace one field of one character."""
        analysis = self._require_analysis()
        characters = list(analysis.characters)
        self.check_index(index, len(characters), "character")
        updated = characters[index].with_field(field, value)
        characters[index] = updated
        self._analysis = analysis.with_characters(characters)
        return updated

    def _require_analysis(self) -> ScriptAnalysis:
        if self._analysis is None:
            raise ValidationError(
                "Analyze the script before editing characters",
                field="analysis",
                constraint="required",
            )
        return self._analysis

    # -------------------------------------------------------------------------
    # Scenes
    # -------------------------------------------------------------------------

    @property
    def scenes(self) -> Tuple[Scene, ...]:
        return tuple(self._scenes)

    @property
    def has_scenes(self) -> bool:
        return bool(self._scenes)

    @property
    def scenes_revision(self) -> int:
        """Changes whenever the scene sequence is replaced wholesale."""
        return self._scenes_revision

    @property
    def scenes_edited(self) -> bool:
        """Whether scenes were edited since the last bulk replacement."""
        return self._scenes_edited

    def scene(self, index: int) -> Scene:
        self.check_index(index, len(self._scenes), "scene")
        return self._scenes[index]

    def replace_scenes(self, scenes) -> None:
        """Replace the entire scene sequence, discarding any local edits."""
        self._scenes = list(scenes)
        self._scenes_revision += 1
        self._scenes_edited = False
        logger.debug(f"Scene sequence replaced with {len(self._scenes)} scenes")

    def edit_scene(self, index: int, field: str, value: str) -> Scene:
        """Replace one field of one scene; all other scenes are left untouched."""
        self.check_index(index, len(self._scenes), "scene")
        updated = self._scenes[index].with_field(field, value)
        self._scenes = self._scenes[:index] + [updated] + self._scenes[index + 1:]
        self._scenes_edited = True
        return updated

    def scene_image_count(self, index: int) -> int:
        return self.scene(index).generated_image_count

    def append_scene_image(self, index: int, url: str) -> Scene:
        """Add one generated illustration to a scene."""
        self.check_index(index, len(self._scenes), "scene")
        updated = self._scenes[index].with_image(url)
        self._scenes = self._scenes[:index] + [updated] + self._scenes[index + 1:]
        return updated

    @property
    def scene_preferences(self) -> ScenePreferences:
        return self._scene_preferences

    def set_scene_preferences(self, preferences: ScenePreferences) -> None:
        self._scene_preferences = preferences

    # -------------------------------------------------------------------------
    # Audio and captions
    # -------------------------------------------------------------------------

    @property
    def audio_preferences(self) -> AudioPreferences:
        return self._audio_preferences

    def set_audio_preferences(self, preferences: AudioPreferences) -> None:
        self._audio_preferences = preferences

    def select_engine(self, engine) -> AudioPreferences:
        """Switch engine; language and voice reset to the engine's defaults."""
        self._audio_preferences = self._audio_preferences.with_engine(engine)
        return self._audio_preferences

    def select_language(self, language_code: str) -> AudioPreferences:
        self._audio_preferences = self._audio_preferences.with_language(language_code)
        return self._audio_preferences

    def select_voice(self, voice_id: str) -> AudioPreferences:
        self._audio_preferences = self._audio_preferences.with_voice(voice_id)
        return self._audio_preferences

    def set_audio_options(self, **options) -> AudioPreferences:
        self._audio_preferences = self._audio_preferences.with_options(**options)
        return self._audio_preferences

    @property
    def caption_settings(self) -> CaptionSettings:
        return self._caption_settings

    def set_caption_settings(self, settings: CaptionSettings) -> None:
        self._caption_settings = settings

    def update_captions(self, section: str, **values) -> CaptionSettings:
        self._caption_settings = self._caption_settings.updated(section, **values)
        return self._caption_settings

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def error(self, key: str) -> Optional[GenerationFailure]:
        return self._errors.get(key)

    @property
    def errors(self) -> Dict[str, GenerationFailure]:
        return dict(self._errors)

    def set_error(self, key: str, failure: GenerationFailure) -> None:
        self._errors[key] = failure

    def clear_error(self, key: str) -> None:
        self._errors.pop(key, None)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def check_index(index: int, length: int, kind: str) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < length:
            raise ValidationError(
                f"No {kind} at index {index}",
                field=f"{kind}_index",
                value=index,
                constraint=f"0 <= index < {length}",
            )

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the session for presentation layers."""
        return {
            "script_text": self._script_text,
            "analysis": self._analysis.to_dict() if self._analysis else None,
            "scenes": [scene.to_dict() for scene in self._scenes],
            "scene_preferences": self._scene_preferences.to_dict(),
            "audio_preferences": self._audio_preferences.to_dict(),
            "caption_settings": self._caption_settings.to_dict(),
            "errors": {key: failure.to_dict() for key, failure in self._errors.items()},
        }
