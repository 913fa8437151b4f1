"""
Configuration
=============

Typed configuration sections loaded from YAML. String values may reference
environment variables as ${VAR} or ${VAR:-default}; references are expanded
before the sections validate themselves.
"""

import os
import re
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Sections
# =============================================================================


@dataclass
class ServicesConfig:
    """Endpoints of the remote generation capabilities."""

    script_analysis_url: str = "http://localhost:8000/script/analyze"
    scene_generation_url: str = "http://localhost:8000/scenes/generate"
    scene_image_url: str = "http://localhost:8000/scenes/image"
    speech_synthesis_url: str = "http://localhost:8000/audio/synthesize"
    api_key: Optional[str] = None
    timeout: float = 120.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        for name in (
            "script_analysis_url",
            "scene_generation_url",
            "scene_image_url",
            "speech_synthesis_url",
        ):
            url = getattr(self, name)
            if not str(url).startswith(("http://", "https://")):
                raise ConfigurationError(
                    f"{name} must be an http(s) URL, got {url!r}",
                    config_key=f"services.{name}",
                )
        if not 1 <= float(self.timeout) <= 600:
            raise ConfigurationError(
                f"timeout must be 1-600 seconds, got {self.timeout}",
                config_key="services.timeout",
            )
        if self.api_key == "":
            self.api_key = None

    def url_for(self, capability: str) -> str:
        """Return the endpoint configured for a capability name."""
        key = f"{capability}_url"
        if not hasattr(self, key):
            raise ConfigurationError(
                f"No endpoint configured for capability: {capability}",
                config_key=f"services.{key}",
            )
        return getattr(self, key)


@dataclass
class ImageConfig:
    """Scene image generation settings."""

    width: int = 1024
    height: int = 576
    engine: Optional[str] = None
    resolution: Optional[str] = "1024x576"
    max_per_scene: int = 3

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not (64 <= self.width <= 4096 and 64 <= self.height <= 4096):
            raise ConfigurationError(
                f"Image size must be within 64-4096 px, got {self.width}x{self.height}",
                config_key="images.width",
            )
        if not 1 <= self.max_per_scene <= 3:
            raise ConfigurationError(
                f"max_per_scene must be 1-3, got {self.max_per_scene}",
                config_key="images.max_per_scene",
            )


@dataclass
class AudioConfig:
    """Speech synthesis defaults."""

    engine: str = "generative"
    sample_rate: int = 24000
    speech_rate: int = 100
    ssml: bool = False
    max_text_length: int = 1000

    VALID_SAMPLE_RATES = {8000, 16000, 22050, 24000}

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.sample_rate not in self.VALID_SAMPLE_RATES:
            raise ConfigurationError(
                f"Invalid sample rate: {self.sample_rate}",
                config_key="audio.sample_rate",
            )
        if not 20 <= self.speech_rate <= 200:
            raise ConfigurationError(
                f"speech_rate must be 20-200, got {self.speech_rate}",
                config_key="audio.speech_rate",
            )
        if self.max_text_length < 1:
            raise ConfigurationError(
                f"max_text_length must be positive, got {self.max_text_length}",
                config_key="audio.max_text_length",
            )


@dataclass
class LoggingConfig:
    """Logging settings applied by command-line entry points."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    def __post_init__(self):
        self.level = str(self.level).upper()
        if self.level not in self.VALID_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {self.level}",
                config_key="logging.level",
            )


# =============================================================================
# Loading
# =============================================================================


# ${VAR} or ${VAR:-default}
_ENV_REFERENCE = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _expand_env(value: Any) -> Any:
    """Substitute environment references in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    return value


def _candidate_files(path: Optional[Union[str, Path]]) -> List[Path]:
    candidates = [
        Path("./config/defaults.yaml"),
        Path("./defaults.yaml"),
        Path.home() / ".storyflow" / "config.yaml",
    ]
    if path:
        if not Path(path).exists():
            raise ConfigurationError(f"Config file not found: {path}", config_key=str(path))
        candidates.insert(0, Path(path))
    return candidates


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}", config_key=str(path))


@dataclass
class Config:
    """
    Settings of one Storyflow process.

    Sections:
        services: where each generation capability lives and how to call it
        images: illustration size and the per-scene limit
        audio: default voice engine and narration limits
        logging: level and format used by the CLI
    """

    services: ServicesConfig = field(default_factory=ServicesConfig)
    images: ImageConfig = field(default_factory=ImageConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    SECTIONS = ("services", "images", "audio", "logging")

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Read the first config file found and build a validated Config.

        An explicit ``path`` is tried first and must exist. Without any file
        the defaults apply.

        Raises:
            ConfigurationError: On a missing explicit file, bad YAML or invalid values
        """
        for candidate in _candidate_files(path):
            if candidate.exists():
                logger.info(f"Loading config from: {candidate}")
                return cls.from_dict(_expand_env(_read_yaml(candidate)))

        logger.info("No config file found, using defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from plain section mappings; missing sections take defaults."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")
        try:
            return cls(
                services=ServicesConfig(**(data.get("services") or {})),
                images=ImageConfig(**(data.get("images") or {})),
                audio=AudioConfig(**(data.get("audio") or {})),
                logging=LoggingConfig(**(data.get("logging") or {})),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {section: asdict(getattr(self, section)) for section in self.SECTIONS}


# =============================================================================
# Process-wide Config
# =============================================================================


_config: Optional[Config] = None


def get_config() -> Config:
    """Return the process config, loading it on first use."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    global _config
    _config = config


def reset_config() -> None:
    """Forget the process config so the next get_config() reloads it."""
    global _config
    _config = None
