"""
Caption Settings
================

Client-local caption styling. These settings never go through a generation
service; they only feed the caption cue builder and the render stage.
"""

from dataclasses import dataclass, field, fields, replace, asdict
from typing import Dict, Any

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class FontSettings:
    family: str = "Arial"
    size: int = 48
    weight: str = "bold"
    color: str = "#FFFFFF"
    stroke_color: str = "#000000"
    stroke_width: int = 2


@dataclass(frozen=True)
class PositionSettings:
    vertical: str = "bottom"
    horizontal: str = "center"
    padding_bottom: int = 50
    padding_left: int = 0
    padding_right: int = 0


@dataclass(frozen=True)
class StyleSettings:
    background_color: str = "rgba(0, 0, 0, 0.5)"
    text_align: str = "center"
    line_height: float = 1.5
    max_width: str = "80%"
    border_radius: int = 8
    padding: int = 12


@dataclass(frozen=True)
class AnimationSettings:
    type: str = "fade"
    duration: float = 0.5
    delay: float = 0.2
    easing: str = "ease-in-out"


@dataclass(frozen=True)
class TimingSettings:
    word_duration: float = 0.3
    min_duration: float = 2.0
    max_duration: float = 6.0


@dataclass(frozen=True)
class AccessibilitySettings:
    enabled: bool = True
    font_size: str = "1.2em"
    contrast: str = "high"
    screen_reader_only: bool = False


@dataclass(frozen=True)
class FormatSettings:
    type: str = "SRT"
    split_strategy: str = "sentence"
    max_lines_per_caption: int = 2
    max_characters_per_line: int = 42


@dataclass(frozen=True)
class LanguageSettings:
    primary: str = "en-US"
    fallback: str = "en"


# Closed enumerations, keyed by (section, field)
_CHOICES = {
    ("position", "vertical"): ("top", "middle", "bottom"),
    ("position", "horizontal"): ("left", "center", "right"),
    ("style", "text_align"): ("left", "center", "right"),
    ("animation", "type"): ("fade", "slide", "none"),
    ("accessibility", "contrast"): ("normal", "high"),
    ("format", "type"): ("SRT", "VTT"),
    ("format", "split_strategy"): ("sentence", "word", "character"),
}


@dataclass(frozen=True)
class CaptionSettings:
    """Caption configuration with the product's default look."""

    font: FontSettings = field(default_factory=FontSettings)
    position: PositionSettings = field(default_factory=PositionSettings)
    style: StyleSettings = field(default_factory=StyleSettings)
    animation: AnimationSettings = field(default_factory=AnimationSettings)
    timing: TimingSettings = field(default_factory=TimingSettings)
    accessibility: AccessibilitySettings = field(default_factory=AccessibilitySettings)
    format: FormatSettings = field(default_factory=FormatSettings)
    language: LanguageSettings = field(default_factory=LanguageSettings)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for (section, name), allowed in _CHOICES.items():
            value = getattr(getattr(self, section), name)
            if value not in allowed:
                raise ValidationError(
                    f"Invalid {section}.{name}: {value}",
                    field=f"{section}.{name}",
                    value=value,
                    constraint=f"one of {', '.join(allowed)}",
                )

        timing = self.timing
        if timing.word_duration <= 0:
            raise ValidationError("timing.word_duration must be positive", field="timing.word_duration")
        if not 0 < timing.min_duration <= timing.max_duration:
            raise ValidationError(
                "timing.min_duration must be positive and not exceed timing.max_duration",
                field="timing.min_duration",
            )
        if self.format.max_lines_per_caption < 1 or self.format.max_characters_per_line < 1:
            raise ValidationError(
                "Caption line limits must be positive",
                field="format.max_characters_per_line",
            )

    def updated(self, section: str, **values) -> "CaptionSettings":
        """
        Return a copy with fields of one section changed.

        Raises:
            ValidationError: On an unknown section or field, or an invalid value
        """
        if section not in {f.name for f in fields(self)}:
            raise ValidationError(f"Unknown caption section: {section}", field=section)
        current = getattr(self, section)
        known = {f.name for f in fields(current)}
        unknown = set(values) - known
        if unknown:
            raise ValidationError(
                f"Unknown {section} field: {', '.join(sorted(unknown))}",
                field=f"{section}.{sorted(unknown)[0]}",
            )
        return replace(self, **{section: replace(current, **values)})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptionSettings":
        sections = {}
        for f in fields(cls):
            values = data.get(f.name) or {}
            try:
                sections[f.name] = f.default_factory(**values)
            except TypeError as e:
                raise ValidationError(f"Invalid caption section {f.name}: {e}", field=f.name)
        return cls(**sections)
