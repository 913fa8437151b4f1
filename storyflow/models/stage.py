"""
Workflow Stages
===============
"""

from enum import IntEnum


class Stage(IntEnum):
    """The five production stages, in order."""

    SCRIPT = 1
    SCENES = 2
    AUDIO = 3
    CAPTIONS = 4
    RENDER = 5

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @classmethod
    def first(cls) -> "Stage":
        return cls.SCRIPT

    @classmethod
    def last(cls) -> "Stage":
        return cls.RENDER
