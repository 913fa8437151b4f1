"""
Stage Controller
================

Linear progression through the five production stages.

A stage may be left forward only when its exit requirement holds:

    SCRIPT    a script analysis exists
    SCENES    at least one scene exists
    AUDIO, CAPTIONS, RENDER    none

Moving backward is always allowed and never clears artifacts.
"""

import logging
from typing import Optional, List, Tuple, Union

from ..models.stage import Stage
from ..session.store import ArtifactStore

logger = logging.getLogger(__name__)


class StageController:
    """Tracks the current stage and guards transitions."""

    def __init__(self, store: ArtifactStore, initial: Stage = Stage.SCRIPT):
        self.store = store
        self._current = Stage(initial)

    @property
    def current(self) -> Stage:
        return self._current

    @property
    def is_last(self) -> bool:
        return self._current == Stage.last()

    # -------------------------------------------------------------------------
    # Requirements
    # -------------------------------------------------------------------------

    def requirement_for(self, stage: Stage) -> Optional[str]:
        """
        Reason the given stage cannot be left forward, or None if it can.
        """
        if stage == Stage.SCRIPT and not self.store.has_analysis:
            return "Analyze the script before continuing"
        if stage == Stage.SCENES and not self.store.has_scenes:
            return "Generate scenes before continuing"
        return None

    def is_completed(self, stage: Union[Stage, int]) -> bool:
        """Whether the stage's exit requirement is satisfied."""
        return self.requirement_for(Stage(stage)) is None

    def can_advance(self) -> bool:
        return not self.is_last and self.is_completed(self._current)

    def blocking_requirement(self) -> Optional[str]:
        if self.is_last:
            return None
        return self.requirement_for(self._current)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def advance(self) -> bool:
        """Move to the next stage. Returns True if the stage changed."""
        if self.is_last:
            return False
        reason = self.requirement_for(self._current)
        if reason:
            logger.info(f"Cannot leave {self._current.title}: {reason}")
            return False
        self._move(Stage(self._current + 1))
        return True

    def retreat(self) -> bool:
        """Move to the previous stage. Returns True if the stage changed."""
        if self._current == Stage.first():
            return False
        self._move(Stage(self._current - 1))
        return True

    def go_to(self, stage: Union[Stage, int]) -> bool:
        """
        Jump directly to ``stage``.

        A forward jump needs every stage it passes to have its exit
        requirement satisfied, the same as the equivalent chain of
        ``advance()`` calls. Backward jumps are always allowed.

        Raises:
            ValueError: If ``stage`` is not a known stage
        """
        target = Stage(stage)
        if target == self._current:
            return False

        if target > self._current:
            for passed in range(self._current, target):
                reason = self.requirement_for(Stage(passed))
                if reason:
                    logger.info(f"Cannot jump to {target.title}: {reason}")
                    return False

        self._move(target)
        return True

    def _move(self, target: Stage) -> None:
        logger.debug(f"Stage {self._current.title} -> {target.title}")
        self._current = target

    def stages(self) -> List[Tuple[int, str]]:
        """All stages as (id, title) pairs, in order."""
        return [(stage.value, stage.title) for stage in Stage]

    def to_dict(self):
        return {
            "current": self._current.value,
            "title": self._current.title,
            "can_advance": self.can_advance(),
            "blocking_requirement": self.blocking_requirement(),
        }
