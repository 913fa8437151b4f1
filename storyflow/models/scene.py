"""
Scene Models
============

Scenes produced by the scene generation capability, the preferences that
steer it, and the settings used to illustrate a scene.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Dict, Any

from ..core.exceptions import ValidationError, MalformedResponseError


# Successful image generations allowed per scene
MAX_IMAGES_PER_SCENE = 3


class Genre(Enum):
    DRAMA = "drama"
    COMEDY = "comedy"
    ACTION = "action"
    THRILLER = "thriller"
    ROMANCE = "romance"


class SceneStyle(Enum):
    REALISTIC = "realistic"
    STYLIZED = "stylized"
    MINIMALIST = "minimalist"
    CINEMATIC = "cinematic"


class Tone(Enum):
    LIGHT = "light"
    NEUTRAL = "neutral"
    DARK = "dark"
    INTENSE = "intense"


class Pacing(Enum):
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class ScenePreferences:
    """Creative direction sent along with a scene generation request."""

    genre: Genre = Genre.DRAMA
    style: SceneStyle = SceneStyle.REALISTIC
    tone: Tone = Tone.NEUTRAL
    pacing: Pacing = Pacing.MODERATE

    _FIELD_TYPES = {
        "genre": Genre,
        "style": SceneStyle,
        "tone": Tone,
        "pacing": Pacing,
    }

    def with_values(self, **values) -> "ScenePreferences":
        """
        Return a copy with some preferences changed.

        Values may be given as enum members or their string values.

        Raises:
            ValidationError: On an unknown field or a value outside its enumeration
        """
        updates = {}
        for name, value in values.items():
            enum_type = self._FIELD_TYPES.get(name)
            if enum_type is None:
                raise ValidationError(
                    f"Unknown scene preference: {name}",
                    field=name,
                )
            try:
                updates[name] = value if isinstance(value, enum_type) else enum_type(value)
            except ValueError:
                allowed = ", ".join(member.value for member in enum_type)
                raise ValidationError(
                    f"Invalid {name}: {value}",
                    field=name,
                    value=value,
                    constraint=f"one of {allowed}",
                )
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, str]:
        return {
            "genre": self.genre.value,
            "style": self.style.value,
            "tone": self.tone.value,
            "pacing": self.pacing.value,
        }


@dataclass(frozen=True)
class ImageSettings:
    """Output settings for a scene illustration."""

    width: int = 1024
    height: int = 576
    engine: Optional[str] = None
    resolution: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"width": self.width, "height": self.height}
        if self.engine:
            data["engine"] = self.engine
        elif self.resolution:
            data["resolution"] = self.resolution
        return data


@dataclass(frozen=True)
class Scene:
    """
    A single scene of the breakdown.

    Scenes arrive in bulk from the scene generation capability with no images.
    Illustrations are appended one at a time and never removed, so
    ``generated_image_count`` always equals ``len(image_urls)``.
    """

    description: str = ""
    setting: str = ""
    time_of_day: str = ""
    background: str = ""
    mood: str = ""
    expressiveness: str = ""
    visual_details: str = ""
    timeline: str = ""
    image_urls: Tuple[str, ...] = field(default_factory=tuple)

    EDITABLE_FIELDS = (
        "description",
        "setting",
        "time_of_day",
        "background",
        "mood",
        "expressiveness",
        "visual_details",
        "timeline",
    )

    # Wire names that differ from the attribute names
    _WIRE_NAMES = {"description": "scene"}

    @property
    def generated_image_count(self) -> int:
        return len(self.image_urls)

    @property
    def can_generate_image(self) -> bool:
        return self.generated_image_count < MAX_IMAGES_PER_SCENE

    def with_field(self, name: str, value: str) -> "Scene":
        """Return a copy with one text field replaced."""
        if name not in self.EDITABLE_FIELDS:
            raise ValidationError(
                f"Unknown scene field: {name}",
                field=name,
                constraint=f"one of {', '.join(self.EDITABLE_FIELDS)}",
            )
        return replace(self, **{name: value})

    def with_image(self, url: str) -> "Scene":
        """Return a copy with one more illustration."""
        if not url:
            raise ValidationError("Image URL cannot be empty", field="image_url")
        if not self.can_generate_image:
            raise ValidationError(
                f"Scene already has {MAX_IMAGES_PER_SCENE} images",
                field="image_urls",
                constraint=f"at most {MAX_IMAGES_PER_SCENE}",
            )
        return replace(self, image_urls=self.image_urls + (url,))

    def to_payload(self) -> Dict[str, str]:
        """Scene text fields in the wire format."""
        return {
            self._WIRE_NAMES.get(name, name): getattr(self, name)
            for name in self.EDITABLE_FIELDS
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = self.to_payload()
        data["image_urls"] = list(self.image_urls)
        data["generated_image_count"] = self.generated_image_count
        return data

    @classmethod
    def from_response(cls, data: Any) -> "Scene":
        """
        Build a scene from one record of a scene generation response.

        Raises:
            MalformedResponseError: If the record is not an object
        """
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "Scene record is not an object",
                capability="scene_generation",
            )
        values = {}
        for name in cls.EDITABLE_FIELDS:
            raw = data.get(cls._WIRE_NAMES.get(name, name))
            values[name] = "" if raw is None else str(raw)
        return cls(**values)
