"""
Scene Image Service
===================

Illustrates a single scene.
"""

import logging

from ..core.exceptions import ServerRejectedError, MalformedResponseError
from ..models.scene import Scene, ImageSettings
from .base import BaseGenerationService
from .factory import register_capability

logger = logging.getLogger(__name__)


@register_capability("scene_image")
class SceneImageService(BaseGenerationService):
    """
    Client for the scene image capability.

    The service answers ``{"status": "success", "image_url": ...}``. A 2xx
    answer with any other status counts as a rejection when it explains
    itself, and as malformed otherwise.
    """

    @property
    def capability_name(self) -> str:
        return "scene_image"

    async def generate(self, scene: Scene, image_settings: ImageSettings) -> str:
        """
        Generate one illustration for a scene.

        The per-scene image cap is not checked here.

        Returns:
            URL of the generated image
        """
        payload = dict(scene.to_payload())
        payload["imageSettings"] = image_settings.to_dict()

        data = await self._post(payload)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Scene image response is not an object",
                capability=self.capability_name,
            )

        status = data.get("status")
        if status != "success":
            message = self._message_from_body(data)
            if message:
                raise ServerRejectedError(
                    message,
                    capability=self.capability_name,
                    details={"status": status},
                )
            raise MalformedResponseError(
                f"Scene image response has status {status!r}",
                capability=self.capability_name,
                missing_field="status",
            )

        image_url = self._require(data, "image_url")
        logger.info(f"Generated scene image: {image_url}")
        return str(image_url)
