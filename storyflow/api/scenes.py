"""
Scene Generation Service
========================

Breaks an analyzed story into a sequence of scenes.
"""

import logging
from typing import List

from ..core.exceptions import MalformedResponseError
from ..models.scene import Scene, ScenePreferences
from ..models.script import ScriptAnalysis
from .base import BaseGenerationService
from .factory import register_capability

logger = logging.getLogger(__name__)


@register_capability("scene_generation")
class SceneGenerationService(BaseGenerationService):
    """Client for the scene generation capability."""

    @property
    def capability_name(self) -> str:
        return "scene_generation"

    async def generate(
        self,
        story_text: str,
        analysis: ScriptAnalysis,
        preferences: ScenePreferences,
    ) -> List[Scene]:
        """
        Generate the scene breakdown of a story.

        Returns:
            Scenes in story order, each without images

        Raises:
            MalformedResponseError: If the body is not a JSON array of objects
        """
        payload = {
            "story": story_text,
            "analysis": analysis.to_dict(),
            "preferences": preferences.to_dict(),
        }
        data = await self._post(payload)

        if not isinstance(data, list):
            raise MalformedResponseError(
                "Scene generation response is not an array",
                capability=self.capability_name,
            )

        scenes = [Scene.from_response(record) for record in data]
        logger.info(f"Generated {len(scenes)} scenes")
        return scenes
