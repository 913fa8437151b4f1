"""
Generation Quota
================

Caps the number of successful image generations per scene.

Reservations are taken before a request is issued, so the cap holds however
many triggers race: a scene's committed images plus its pending reservations
never exceed the limit.
"""

import logging
from collections import defaultdict
from typing import Dict

from ..models.scene import MAX_IMAGES_PER_SCENE
from .store import ArtifactStore

logger = logging.getLogger(__name__)


class GenerationQuota:
    """Per-scene image generation counter backed by the artifact store."""

    def __init__(self, store: ArtifactStore, limit: int = MAX_IMAGES_PER_SCENE):
        if not 1 <= limit <= MAX_IMAGES_PER_SCENE:
            raise ValueError(f"limit must be 1-{MAX_IMAGES_PER_SCENE}, got {limit}")
        self.store = store
        self.limit = limit
        self._pending: Dict[int, int] = defaultdict(int)

    def pending(self, key: int) -> int:
        return self._pending.get(key, 0)

    def remaining(self, key: int) -> int:
        """Reservations still available for a scene."""
        return max(0, self.limit - self.store.scene_image_count(key) - self.pending(key))

    def try_reserve(self, key: int) -> bool:
        """
        Reserve one generation for a scene.

        Returns:
            True if admitted (pending count incremented), False with no side effect otherwise
        """
        if self.store.scene_image_count(key) + self.pending(key) >= self.limit:
            logger.warning(f"Image quota reached for scene {key}")
            return False
        self._pending[key] += 1
        return True

    def commit(self, key: int, url: str) -> None:
        """Turn a reservation into a stored image."""
        self._take(key)
        self.store.append_scene_image(key, url)
        logger.info(f"Scene {key} now has {self.store.scene_image_count(key)} images")

    def release(self, key: int) -> None:
        """Drop a reservation after a failed generation."""
        self._take(key)

    def _take(self, key: int) -> None:
        if self._pending.get(key, 0) <= 0:
            raise ValueError(f"No pending reservation for scene {key}")
        self._pending[key] -= 1
        if not self._pending[key]:
            del self._pending[key]
