"""
Caption Cues
============

Turn narration text into timed caption cues and render them as SRT or VTT,
following the format and timing sections of CaptionSettings.

Split strategies:
- sentence: every sentence starts a new cue
- word: words flow continuously across cues
- character: text is cut into fixed-width lines regardless of word boundaries
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models.captions import CaptionSettings


_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True)
class CaptionCue:
    """One caption shown between ``start`` and ``end`` seconds."""

    index: int
    start: float
    end: float
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def duration(self) -> float:
        return self.end - self.start


# -----------------------------------------------------------------------------
# Line wrapping
# -----------------------------------------------------------------------------


def _wrap_words(words: List[str], width: int) -> List[str]:
    """Greedy word wrap; words longer than ``width`` are hard-split."""
    lines: List[str] = []
    current = ""
    for word in words:
        while len(word) > width:
            if current:
                lines.append(current)
                current = ""
            lines.append(word[:width])
            word = word[width:]
        if not word:
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def _chunk(lines: List[str], size: int) -> List[List[str]]:
    return [lines[i:i + size] for i in range(0, len(lines), size)]


def split_lines(text: str, settings: Optional[CaptionSettings] = None) -> List[List[str]]:
    """
    Split text into cue bodies, each a list of at most ``max_lines_per_caption`` lines.
    """
    settings = settings or CaptionSettings()
    fmt = settings.format
    width = fmt.max_characters_per_line
    text = " ".join((text or "").split())
    if not text:
        return []

    if fmt.split_strategy == "sentence":
        blocks: List[List[str]] = []
        for sentence in _SENTENCE_END.split(text):
            blocks.extend(_chunk(_wrap_words(sentence.split(), width), fmt.max_lines_per_caption))
        return blocks

    if fmt.split_strategy == "word":
        lines = _wrap_words(text.split(), width)
    else:
        lines = [text[i:i + width].strip() for i in range(0, len(text), width)]
        lines = [line for line in lines if line]
    return _chunk(lines, fmt.max_lines_per_caption)


# -----------------------------------------------------------------------------
# Timing
# -----------------------------------------------------------------------------


def cue_duration(text: str, settings: Optional[CaptionSettings] = None) -> float:
    """Display time of a cue: word count times word_duration, clamped to the min/max."""
    timing = (settings or CaptionSettings()).timing
    words = len(text.split())
    return min(max(words * timing.word_duration, timing.min_duration), timing.max_duration)


def build_cues(text: str, settings: Optional[CaptionSettings] = None, offset: float = 0.0) -> List[CaptionCue]:
    """
    Build back-to-back timed cues for narration text.

    Args:
        text: Narration text
        settings: Caption settings (defaults when omitted)
        offset: Start time of the first cue in seconds
    """
    settings = settings or CaptionSettings()
    cues = []
    start = offset
    for number, lines in enumerate(split_lines(text, settings), start=1):
        end = start + cue_duration(" ".join(lines), settings)
        cues.append(CaptionCue(index=number, start=round(start, 3), end=round(end, 3), lines=tuple(lines)))
        start = end
    return cues


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


def format_timestamp(seconds: float, separator: str = ",") -> str:
    """Format seconds as HH:MM:SS,mmm (SRT) or HH:MM:SS.mmm (VTT)."""
    millis = int(round(seconds * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}{separator}{millis:03d}"


def to_srt(cues: List[CaptionCue]) -> str:
    blocks = [
        f"{cue.index}\n{format_timestamp(cue.start)} --> {format_timestamp(cue.end)}\n{cue.text}\n"
        for cue in cues
    ]
    return "\n".join(blocks)


def to_vtt(cues: List[CaptionCue]) -> str:
    blocks = ["WEBVTT\n"]
    blocks.extend(
        f"{format_timestamp(cue.start, '.')} --> {format_timestamp(cue.end, '.')}\n{cue.text}\n"
        for cue in cues
    )
    return "\n".join(blocks)


def render_captions(text: str, settings: Optional[CaptionSettings] = None) -> str:
    """Build cues for ``text`` and render them in the configured format."""
    settings = settings or CaptionSettings()
    cues = build_cues(text, settings)
    if settings.format.type == "VTT":
        return to_vtt(cues)
    return to_srt(cues)
