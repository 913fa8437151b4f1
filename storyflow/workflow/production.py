"""
Production Session
==================

Orchestration boundary of one guided production session.

Every generation operation passes through the same steps:

    validate input -> RequestGate -> (GenerationQuota) -> GenerationClient
                   -> apply result through the ArtifactStore

Failures never propagate past this class. They are classified into a
GenerationFailure, stored under the request key and returned inside an
OperationResult. A failed call leaves the store as it was.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Optional, Any, Dict, Union, Callable, Awaitable

from ..api.client import GenerationClient
from ..captions import render_captions
from ..core.config import Config, get_config
from ..core.security import sanitize_speech_text
from ..core.exceptions import (
    StoryflowError,
    ValidationError,
    QuotaExceededError,
    RequestInProgressError,
)
from ..models.audio import AudioPreferences
from ..models.scene import ImageSettings
from ..models.stage import Stage
from ..session.audio import AudioSession, PlaybackDevice
from ..session.editors import SceneEditor, CharacterEditor
from ..session.failures import GenerationFailure
from ..session.gate import RequestGate, request_key
from ..session.quota import GenerationQuota
from ..session.store import ArtifactStore
from ..utils.downloads import download_asset
from .stages import StageController

logger = logging.getLogger(__name__)


SCRIPT_KEY = request_key(Stage.SCRIPT)
SCENES_KEY = request_key(Stage.SCENES)
AUDIO_KEY = request_key(Stage.AUDIO)

FAILURE_MESSAGES = {
    SCRIPT_KEY: "Failed to analyze script. Please try again.",
    SCENES_KEY: "Failed to generate scenes. Please try again.",
    AUDIO_KEY: "Failed to generate audio. Please try again.",
}
IMAGE_FAILURE_MESSAGE = "Failed to generate image. Please try again."


# =============================================================================
# Operation Results
# =============================================================================


class OperationStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DISCARDED = "discarded"
    REJECTED_IN_PROGRESS = "rejected_in_progress"
    REJECTED_QUOTA = "rejected_quota"
    REJECTED_INVALID = "rejected_invalid"


@dataclass
class OperationResult:
    """Outcome of one session operation."""

    status: OperationStatus
    value: Any = None
    failure: Optional[GenerationFailure] = None
    discarded_edits: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        elif isinstance(value, tuple):
            value = [item.to_dict() if hasattr(item, "to_dict") else item for item in value]
        return {
            "status": self.status.value,
            "value": value,
            "failure": self.failure.to_dict() if self.failure else None,
            "discarded_edits": self.discarded_edits,
        }


# =============================================================================
# Production Session
# =============================================================================


class ProductionSession:
    """
    Drives one production from script to render.

    Usage:
        async with ProductionSession(GenerationClient.from_config(config), config=config) as session:
            result = await session.analyze_script(story)
            if result.ok and session.advance():
                await session.generate_scenes()
    """

    def __init__(
        self,
        client: GenerationClient,
        store: Optional[ArtifactStore] = None,
        config: Optional[Config] = None,
        device: Optional[PlaybackDevice] = None,
        output_path: Union[str, Path] = "./output",
        downloader: Optional[Callable[..., Awaitable[str]]] = None,
    ):
        """
        Initialize the session.

        Args:
            client: Generation client used for every remote call
            store: Artifact store (a fresh one by default)
            config: Configuration (the global one by default)
            device: Playback device for narration
            output_path: Directory downloads are saved into
            downloader: Coroutine ``(url, destination)`` that saves an asset
        """
        self.client = client
        self.config = config or get_config()
        self.store = store or ArtifactStore(audio_preferences=self._audio_defaults(self.config))

        self.gate = RequestGate()
        self.quota = GenerationQuota(self.store, limit=self.config.images.max_per_scene)
        self.stages = StageController(self.store)
        self.scene_editor = SceneEditor(self.store)
        self.character_editor = CharacterEditor(self.store)
        self.audio = AudioSession(device)

        images = self.config.images
        self.image_settings = ImageSettings(
            width=images.width,
            height=images.height,
            engine=images.engine,
            resolution=images.resolution,
        )

        self.output_path = Path(output_path)
        self._download = downloader or partial(
            download_asset,
            base_path=self.output_path,
            timeout=float(self.config.services.timeout),
        )
        self.created_at = datetime.now()
        self.updated_at = self.created_at

    @staticmethod
    def _audio_defaults(config: Config) -> AudioPreferences:
        audio = config.audio
        return AudioPreferences.for_engine(
            audio.engine,
            sample_rate=audio.sample_rate,
            speech_rate=audio.speech_rate,
            ssml=audio.ssml,
        )

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @property
    def current_stage(self) -> Stage:
        return self.stages.current

    def advance(self) -> bool:
        return self.stages.advance()

    def retreat(self) -> bool:
        return self.stages.retreat()

    def go_to(self, stage: Union[Stage, int]) -> bool:
        return self.stages.go_to(stage)

    # -------------------------------------------------------------------------
    # Script
    # -------------------------------------------------------------------------

    async def analyze_script(self, text: Optional[str] = None) -> OperationResult:
        """
        Analyze the script text, replacing any previous analysis.

        Args:
            text: New script text (the stored text is used when omitted)
        """
        key = SCRIPT_KEY
        story = self.store.script_text if text is None else text

        if not story.strip():
            return self._invalid(key, ValidationError(
                "Please enter a script to analyze",
                field="story",
                constraint="non-empty",
            ))
        if not self.gate.begin(key):
            return self._in_progress(key)

        # Only an admitted request may replace the script
        self.store.set_script_text(story)
        try:
            logger.info(f"Analyzing script ({len(story)} characters)")
            analysis = await self.client.analyze_script(story)
        except StoryflowError as e:
            return self._failed(key, e)
        finally:
            self.gate.end(key)

        self.store.set_analysis(analysis)
        self.character_editor.reset()
        return self._succeeded(key, analysis)

    # -------------------------------------------------------------------------
    # Scenes
    # -------------------------------------------------------------------------

    async def generate_scenes(self) -> OperationResult:
        """
        Generate the scene breakdown, replacing every existing scene.

        Local scene edits are discarded; the result reports it with
        ``discarded_edits``.
        """
        key = SCENES_KEY
        analysis = self.store.analysis
        if analysis is None or not self.store.script_text.strip():
            return self._invalid(key, ValidationError(
                "Analyze the script before generating scenes",
                field="analysis",
                constraint="required",
            ))
        if not self.gate.begin(key):
            return self._in_progress(key)

        preferences = self.store.scene_preferences
        try:
            logger.info(f"Generating scenes ({preferences.genre.value}, {preferences.style.value})")
            scenes = await self.client.generate_scenes(self.store.script_text, analysis, preferences)
        except StoryflowError as e:
            return self._failed(key, e)
        finally:
            self.gate.end(key)

        discarded = self.scene_editor.replace_all(scenes)
        for error_key in self.store.errors:
            if error_key.startswith(f"{SCENES_KEY}:"):
                self.store.clear_error(error_key)

        result = self._succeeded(key, self.store.scenes)
        result.discarded_edits = discarded
        return result

    def update_scene_preferences(self, **values) -> OperationResult:
        """
        Change scene preferences.

        Rejected while a scene generation request is in flight.
        """
        if self.gate.is_in_flight(SCENES_KEY):
            error = RequestInProgressError(
                "Scene preferences cannot change while scenes are being generated",
                key=SCENES_KEY,
            )
            return OperationResult(
                OperationStatus.REJECTED_IN_PROGRESS,
                failure=GenerationFailure.from_exception(error),
            )
        try:
            preferences = self.store.scene_preferences.with_values(**values)
        except ValidationError as e:
            return OperationResult(
                OperationStatus.REJECTED_INVALID,
                failure=GenerationFailure.from_exception(e),
            )
        self.store.set_scene_preferences(preferences)
        return OperationResult(OperationStatus.SUCCEEDED, value=preferences)

    async def generate_scene_image(self, index: int) -> OperationResult:
        """
        Generate one more illustration for a scene.

        At most ``images.max_per_scene`` illustrations succeed per scene. A
        result that arrives after the scene sequence was regenerated is
        dropped and its reservation released.
        """
        key = request_key(Stage.SCENES, index)
        try:
            scene = self.store.scene(index)
        except ValidationError as e:
            return self._invalid(key, e)

        if not self.gate.begin(key):
            return self._in_progress(key)

        try:
            if not self.quota.try_reserve(index):
                error = QuotaExceededError(
                    f"Scene {index + 1} already has the maximum of {self.quota.limit} images",
                    key=index,
                    limit=self.quota.limit,
                )
                return OperationResult(
                    OperationStatus.REJECTED_QUOTA,
                    failure=GenerationFailure.from_exception(error),
                )

            revision = self.store.scenes_revision
            try:
                logger.info(f"Generating image for scene {index}")
                url = await self.client.generate_scene_image(scene, self.image_settings)
            except StoryflowError as e:
                self.quota.release(index)
                return self._failed(key, e, IMAGE_FAILURE_MESSAGE)

            if self.store.scenes_revision != revision:
                self.quota.release(index)
                logger.warning(f"Discarding image for scene {index}: scenes were regenerated")
                return OperationResult(OperationStatus.DISCARDED, value=url)

            self.quota.commit(index, url)
        finally:
            self.gate.end(key)

        return self._succeeded(key, url)

    async def download_scene_image(
        self,
        index: int,
        image_index: int,
        destination: Union[str, Path],
    ) -> OperationResult:
        """Save one of a scene's illustrations."""
        try:
            scene = self.store.scene(index)
            self.store.check_index(image_index, scene.generated_image_count, "image")
            path = await self._download(scene.image_urls[image_index], destination)
        except StoryflowError as e:
            return self._download_failed(e)
        return OperationResult(OperationStatus.SUCCEEDED, value=path)

    # -------------------------------------------------------------------------
    # Audio
    # -------------------------------------------------------------------------

    def update_audio_preferences(
        self,
        engine: Optional[str] = None,
        language_code: Optional[str] = None,
        voice_id: Optional[str] = None,
        **options,
    ) -> OperationResult:
        """
        Change voice and audio settings.

        Applied in dependency order: engine, then language, then voice, so a
        new engine resets the language and voice before explicit ones apply.
        """
        store = self.store
        previous = store.audio_preferences
        try:
            if engine is not None:
                store.select_engine(engine)
            if language_code is not None:
                store.select_language(language_code)
            if voice_id is not None:
                store.select_voice(voice_id)
            if options:
                store.set_audio_options(**options)
        except ValidationError as e:
            store.set_audio_preferences(previous)
            return OperationResult(
                OperationStatus.REJECTED_INVALID,
                failure=GenerationFailure.from_exception(e),
            )
        return OperationResult(OperationStatus.SUCCEEDED, value=store.audio_preferences)

    async def synthesize_audio(self, text: Optional[str] = None) -> OperationResult:
        """
        Synthesize narration with the current audio preferences.

        The previous track is released as soon as the new synthesis starts.

        Args:
            text: Narration text (the script text is used when omitted)
        """
        key = AUDIO_KEY
        text = self.store.script_text if text is None else text
        if not sanitize_speech_text(text, max_length=self.config.audio.max_text_length):
            return self._invalid(key, ValidationError(
                "There is no text to synthesize",
                field="text",
                constraint="non-empty",
            ))
        if not self.gate.begin(key):
            return self._in_progress(key)

        preferences = self.store.audio_preferences
        try:
            await self.audio.begin_loading()
            try:
                logger.info(
                    f"Synthesizing audio with {preferences.engine.value} voice {preferences.voice_id}"
                )
                audio = await self.client.synthesize_audio(
                    text,
                    preferences.voice_settings(),
                    preferences.audio_settings(),
                    ssml=preferences.ssml,
                )
            except StoryflowError as e:
                result = self._failed(key, e)
                self.audio.fail(result.failure.message)
                return result
            self.audio.complete(audio)
        finally:
            self.gate.end(key)

        return self._succeeded(key, audio)

    async def download_audio(self, destination: Union[str, Path]) -> OperationResult:
        """Save the current narration track."""
        try:
            path = await self.audio.download(destination, self._download)
        except StoryflowError as e:
            return self._download_failed(e)
        return OperationResult(OperationStatus.SUCCEEDED, value=path)

    # -------------------------------------------------------------------------
    # Captions
    # -------------------------------------------------------------------------

    def update_captions(self, section: str, **values) -> OperationResult:
        try:
            settings = self.store.update_captions(section, **values)
        except ValidationError as e:
            return OperationResult(
                OperationStatus.REJECTED_INVALID,
                failure=GenerationFailure.from_exception(e),
            )
        return OperationResult(OperationStatus.SUCCEEDED, value=settings)

    def render_captions(self, text: Optional[str] = None) -> str:
        """Captions for the narration (the script text by default) in the configured format."""
        text = self.store.script_text if text is None else text
        return render_captions(text, self.store.caption_settings)

    # -------------------------------------------------------------------------
    # Result helpers
    # -------------------------------------------------------------------------

    def _succeeded(self, key: str, value: Any) -> OperationResult:
        self.store.clear_error(key)
        self.updated_at = datetime.now()
        return OperationResult(OperationStatus.SUCCEEDED, value=value)

    def _failed(self, key: str, error: StoryflowError, message: Optional[str] = None) -> OperationResult:
        failure = GenerationFailure.from_exception(error, message or FAILURE_MESSAGES.get(key, IMAGE_FAILURE_MESSAGE))
        logger.error(f"Request {key} failed: {error.code}: {error.message}")
        self.store.set_error(key, failure)
        status = (
            OperationStatus.REJECTED_INVALID
            if isinstance(error, ValidationError)
            else OperationStatus.FAILED
        )
        return OperationResult(status, failure=failure)

    def _invalid(self, key: str, error: ValidationError) -> OperationResult:
        failure = GenerationFailure.from_exception(error)
        self.store.set_error(key, failure)
        return OperationResult(OperationStatus.REJECTED_INVALID, failure=failure)

    def _in_progress(self, key: str) -> OperationResult:
        # The outstanding call owns the stored error of this key
        error = RequestInProgressError(f"Request for {key} already in progress", key=key)
        return OperationResult(
            OperationStatus.REJECTED_IN_PROGRESS,
            failure=GenerationFailure.from_exception(error),
        )

    @staticmethod
    def _download_failed(error: StoryflowError) -> OperationResult:
        logger.error(f"Download failed: {error.code}: {error.message}")
        status = (
            OperationStatus.REJECTED_INVALID
            if isinstance(error, ValidationError)
            else OperationStatus.FAILED
        )
        return OperationResult(status, failure=GenerationFailure.from_exception(error))

    # -------------------------------------------------------------------------
    # Summary and lifecycle
    # -------------------------------------------------------------------------

    def project_summary(self) -> Dict[str, Any]:
        """Summary of the production, as listed once the final stage is reached."""
        analysis = self.store.analysis
        return {
            "title": analysis.title if analysis and analysis.title else "New Script",
            "description": self.store.script_text[:100] + "...",
            "status": "active",
            "stage": self.stages.current.value,
            "scene_count": len(self.store.scenes),
            "image_count": sum(scene.generated_image_count for scene in self.store.scenes),
            "has_audio": self.audio.has_audio,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.store.to_dict()
        data["stage"] = self.stages.to_dict()
        data["audio"] = self.audio.to_dict()
        data["in_flight"] = sorted(self.gate.in_flight())
        return data

    async def close(self) -> None:
        await self.audio.reset()
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
