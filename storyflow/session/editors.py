"""
List Editors
============

Reconcile user edits of scenes and characters with data replaced wholesale by
generation responses.

Two operations change a list:

- ``replace_all``: a fresh generation result replaces the whole list and
  discards local edits ("regeneration wins")
- ``edit_field``: one field of one item changes; everything else keeps its identity

Edit mode is exclusive per list. Opening another item silently closes the
current one; nothing is lost because field edits are applied immediately.
"""

import logging
from typing import Optional, Tuple

from ..models.scene import Scene
from ..models.script import Character
from .store import ArtifactStore

logger = logging.getLogger(__name__)


class _ListEditor:
    """Edit-mode bookkeeping shared by both editors."""

    kind = "item"

    def __init__(self, store: ArtifactStore):
        self.store = store
        self._editing: Optional[int] = None

    @property
    def editing_index(self) -> Optional[int]:
        return self._editing

    def _length(self) -> int:
        raise NotImplementedError

    def begin_edit(self, index: int) -> Optional[int]:
        """
        Put one item in edit mode.

        Returns:
            Index of the item whose edit mode was closed, if any
        """
        self.store.check_index(index, self._length(), self.kind)
        previous = self._editing
        if previous is not None and previous != index:
            logger.debug(f"Closing edit of {self.kind} {previous} to edit {index}")
        self._editing = index
        return previous if previous != index else None

    def end_edit(self) -> None:
        self._editing = None

    def toggle_edit(self, index: int) -> bool:
        """Open edit mode on ``index`` or close it if already open. Returns the new state."""
        if self._editing == index:
            self.end_edit()
            return False
        self.begin_edit(index)
        return True

    def is_editing(self, index: int) -> bool:
        return self._editing == index


class SceneEditor(_ListEditor):
    """Edits the scene sequence."""

    kind = "scene"

    def _length(self) -> int:
        return len(self.store.scenes)

    def replace_all(self, scenes) -> bool:
        """
        Replace the whole scene sequence.

        Returns:
            True if local edits were discarded
        """
        discarded = self.store.scenes_edited
        if discarded:
            logger.warning("Scene regeneration discarded local scene edits")
        self.store.replace_scenes(scenes)
        self._editing = None
        return discarded

    def edit_field(self, index: int, field: str, value: str) -> Scene:
        return self.store.edit_scene(index, field, value)

    @property
    def items(self) -> Tuple[Scene, ...]:
        return self.store.scenes


class CharacterEditor(_ListEditor):
    """Edits the character list of the script analysis."""

    kind = "character"

    def _length(self) -> int:
        return len(self.store.characters)

    def add(self, name: str, description: str = "") -> int:
        """
        Append a character.

        Raises:
            ValidationError: If the name is empty or no analysis exists
        """
        return self.store.add_character(
            Character(name=(name or "").strip(), description=description or "")
        )

    def edit_field(self, index: int, field: str, value: str) -> Character:
        return self.store.edit_character(index, field, value)

    def reset(self) -> None:
        """Forget edit mode after the analysis was replaced."""
        self._editing = None

    @property
    def items(self) -> Tuple[Character, ...]:
        return self.store.characters
