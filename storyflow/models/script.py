"""
Script Models
=============

Story analysis returned by the script analysis capability.
"""

from dataclasses import dataclass, field, replace
from typing import Tuple, Dict, Any

from ..core.exceptions import ValidationError, MalformedResponseError


@dataclass(frozen=True)
class Character:
    """A character identified in the story. Identity is its position in the list."""

    name: str
    description: str = ""

    EDITABLE_FIELDS = ("name", "description")

    def validate(self) -> None:
        """A character needs a non-empty name."""
        if not self.name or not self.name.strip():
            raise ValidationError(
                "Character name cannot be empty",
                field="name",
                constraint="non-empty",
            )

    def with_field(self, name: str, value: str) -> "Character":
        """Return a copy with one field replaced."""
        if name not in self.EDITABLE_FIELDS:
            raise ValidationError(
                f"Unknown character field: {name}",
                field=name,
                constraint=f"one of {', '.join(self.EDITABLE_FIELDS)}",
            )
        return replace(self, **{name: value})

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Character":
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class Setting:
    """Where and when the story takes place."""

    location: str = ""
    time: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"location": self.location, "time": self.time}


@dataclass(frozen=True)
class ScriptAnalysis:
    """
    Structured analysis of a story.

    A new analysis always replaces the previous one as a whole; only the
    character list is edited in place (through the artifact store).
    """

    title: str
    characters: Tuple[Character, ...] = field(default_factory=tuple)
    setting: Setting = field(default_factory=Setting)
    plot: Tuple[str, ...] = field(default_factory=tuple)
    moral: str = ""

    def with_characters(self, characters) -> "ScriptAnalysis":
        """Return a copy with the character list replaced."""
        return replace(self, characters=tuple(characters))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format used by the generation services."""
        return {
            "story_title": self.title,
            "characters": [c.to_dict() for c in self.characters],
            "setting": self.setting.to_dict(),
            "plot": list(self.plot),
            "moral": self.moral,
        }

    @classmethod
    def from_response(cls, data: Any) -> "ScriptAnalysis":
        """
        Build an analysis from a script analysis response body.

        Raises:
            MalformedResponseError: If the body is not an object or has no title
        """
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Script analysis response is not an object",
                capability="script_analysis",
            )
        title = data.get("story_title")
        if not title:
            raise MalformedResponseError(
                "Script analysis response has no story_title",
                capability="script_analysis",
                missing_field="story_title",
            )

        characters = data.get("characters") or []
        setting = data.get("setting") or {}
        plot = data.get("plot") or []
        if not isinstance(characters, list) or not isinstance(plot, list) or not isinstance(setting, dict):
            raise MalformedResponseError(
                "Script analysis response has fields of the wrong type",
                capability="script_analysis",
            )

        return cls(
            title=str(title),
            characters=tuple(
                Character.from_dict(c) for c in characters if isinstance(c, dict)
            ),
            setting=Setting(
                location=str(setting.get("location") or ""),
                time=str(setting.get("time") or ""),
            ),
            plot=tuple(str(p) for p in plot),
            moral=str(data.get("moral") or ""),
        )
