"""
Security Utilities
==================

Checks applied at the edges of the session: narration text before it goes to
speech synthesis, secrets before they reach a log line, and asset URLs and
destinations before a download.
"""

import re
import logging
from pathlib import Path
from typing import Optional, Union, Set, FrozenSet
from urllib.parse import urlparse

from .exceptions import SecurityError

logger = logging.getLogger(__name__)


# Upstream speech services reject longer inputs
MAX_SPEECH_TEXT_LENGTH = 1000

# Characters with special meaning to the speech endpoint's transport
RESERVED_SPEECH_CHARACTERS = "%&#+=?/\\"

_WHITESPACE_CONTROLS = {"\n", "\r", "\t", "\v", "\f"}

AUDIO_EXTENSIONS: FrozenSet[str] = frozenset({".mp3", ".wav", ".ogg", ".m4a", ".aac"})
IMAGE_EXTENSIONS: FrozenSet[str] = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif"})
MEDIA_EXTENSIONS = AUDIO_EXTENSIONS | IMAGE_EXTENSIONS

# Parent traversal (plain or URL-encoded), home expansion and null bytes
_UNSAFE_PATH = re.compile(r"\.\.[/\\]|^~|\x00|%2e%2e|%252e", re.IGNORECASE)

_SECRET_PATTERNS = [
    (re.compile(r"Bearer\s+[\w\-.]+", re.IGNORECASE), "Bearer ***REDACTED***"),
    (re.compile(r"api[_-]?key['\"]?\s*[:=]\s*['\"]?[\w\-]+", re.IGNORECASE), "api_key=***REDACTED***"),
    (re.compile(r"(STORYFLOW_API_KEY)=\S+"), r"\1=***REDACTED***"),
]


# =============================================================================
# Narration text
# =============================================================================


def sanitize_speech_text(text: str, max_length: int = MAX_SPEECH_TEXT_LENGTH) -> str:
    """
    Prepare narration text for the speech synthesis endpoint.

    The text is cut to ``max_length`` characters first, then control and
    non-printable characters are removed (line breaks and tabs become a
    single space) and reserved characters are percent-encoded.

    Args:
        text: Raw narration text
        max_length: Number of leading characters kept

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    if len(text) > max_length:
        logger.warning(f"Speech text truncated from {len(text)} to {max_length} characters")
        text = text[:max_length]

    parts = []
    for char in text:
        if char in _WHITESPACE_CONTROLS:
            parts.append(" ")
        elif char in RESERVED_SPEECH_CHARACTERS:
            parts.append(f"%{ord(char):02X}")
        elif char.isprintable():
            parts.append(char)

    return "".join(parts).strip()


def redact_api_key(text: str) -> str:
    """Mask bearer tokens and API keys in text bound for logs or error messages."""
    if not text:
        return text
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


# =============================================================================
# Downloads
# =============================================================================


def sanitize_filename(filename: str, max_length: int = 255) -> str:
    """
    Turn an arbitrary title into a safe file name.

    Runs of anything other than word characters, dots and hyphens become one
    underscore. Leading and trailing separators are dropped and the stem is
    shortened to fit ``max_length`` with its suffix kept.
    """
    name = re.sub(r"[^\w.-]+", "_", filename or "").strip("._-")
    if not name:
        return "unnamed"

    if len(name) > max_length:
        suffix = Path(name).suffix
        name = name[:max_length - len(suffix)] + suffix
    return name


class PathValidator:
    """
    Keeps download destinations inside one base directory.

    Usage:
        validator = PathValidator("./output")
        validator.validate_media("scenes/scene-1.png")   # ./output/scenes/scene-1.png
        validator.validate_media("../../etc/passwd")     # SecurityError
    """

    def __init__(self, base_path: Union[str, Path], extensions: Optional[Set[str]] = None):
        """
        Args:
            base_path: Directory every validated path must resolve into (created if missing)
            extensions: Accepted file suffixes for :meth:`validate` (any when None)
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.extensions = extensions

    def validate(self, path: Union[str, Path]) -> Path:
        """
        Resolve ``path`` against the base directory.

        Relative paths are joined to the base; absolute ones must already lie
        inside it.

        Raises:
            SecurityError: On traversal patterns, paths outside the base or a rejected suffix
        """
        raw = str(path)
        if _UNSAFE_PATH.search(raw):
            logger.warning(f"Blocked unsafe download path: {raw!r}")
            raise SecurityError(
                "Path contains dangerous pattern",
                attempted_path=raw,
                security_type="path_traversal",
            )

        candidate = Path(path)
        try:
            resolved = (candidate if candidate.is_absolute() else self.base_path / candidate).resolve()
        except (ValueError, OSError) as e:
            raise SecurityError(f"Invalid path: {e}", attempted_path=raw, security_type="invalid_path")

        if resolved != self.base_path and self.base_path not in resolved.parents:
            logger.warning(f"Blocked download outside {self.base_path}: {resolved}")
            raise SecurityError(
                "Path is outside allowed directory",
                attempted_path=raw,
                security_type="path_traversal",
            )

        self._check_suffix(resolved, self.extensions, raw)
        return resolved

    def validate_media(self, path: Union[str, Path]) -> Path:
        """Validate the destination of a generated image or audio file."""
        resolved = self.validate(path)
        self._check_suffix(resolved, MEDIA_EXTENSIONS, str(path))
        return resolved

    @staticmethod
    def _check_suffix(resolved: Path, allowed: Optional[Set[str]], raw: str) -> None:
        if allowed and resolved.suffix.lower() not in allowed:
            raise SecurityError(
                f"File extension not allowed: {resolved.suffix or '(none)'}",
                attempted_path=raw,
                security_type="invalid_extension",
            )


def validate_url(url: str, allowed_hosts: Optional[Set[str]] = None) -> str:
    """
    Accept only http(s) asset URLs with a host, optionally from a fixed set of hosts.

    Raises:
        SecurityError: If the URL may not be fetched
    """
    try:
        parsed = urlparse(url or "")
    except ValueError as e:
        raise SecurityError(f"Invalid URL format: {e}", security_type="invalid_url")

    if parsed.scheme not in ("http", "https"):
        raise SecurityError(
            f"Asset URL must use http or https, got {parsed.scheme or 'no scheme'}",
            security_type="invalid_url_scheme",
        )

    host = (parsed.hostname or "").lower()
    if not host:
        raise SecurityError("Asset URL has no host", security_type="invalid_url")
    if allowed_hosts and host not in allowed_hosts:
        raise SecurityError(f"Host not in allowed list: {host}", security_type="blocked_host")

    return url
