"""
Storyflow
=========

Guided content production: script analysis, scene breakdown, audio
synthesis, caption styling and final render, each stage backed by a remote
generation service.

Features:
- Five-stage workflow with readiness checks between stages
- Single-attempt generation calls with classified failures
- At most one in-flight request per artifact
- Per-scene image quota that holds under concurrent triggers
- Field edits that survive until the next bulk regeneration
- Voice catalog with engine/language/voice reset rules
- SRT/VTT caption cues from narration text

Quick Start:
    from storyflow import GenerationClient, ProductionSession, get_config

    config = get_config()
    async with ProductionSession(GenerationClient.from_config(config), config=config) as session:
        result = await session.analyze_script("Once upon a time...")
        if result.ok:
            session.advance()
            await session.generate_scenes()
            await session.generate_scene_image(0)
"""

__version__ = "0.1.0"
__author__ = "Storyflow"

# =============================================================================
# Orchestration
# =============================================================================

from .workflow import (
    ProductionSession,
    OperationResult,
    OperationStatus,
    StageController,
)

from .session import (
    ArtifactStore,
    AudioSession,
    AudioState,
    PlaybackDevice,
    GenerationFailure,
    FailureKind,
)

# =============================================================================
# Generation Services
# =============================================================================

from .api import GenerationClient, get_service, list_capabilities

# =============================================================================
# Models
# =============================================================================

from .models import (
    Stage,
    Character,
    ScriptAnalysis,
    Scene,
    ScenePreferences,
    ImageSettings,
    AudioEngine,
    AudioPreferences,
    GeneratedAudio,
    CaptionSettings,
)

from .captions import build_cues, render_captions

# =============================================================================
# Core
# =============================================================================

from .core import (
    Config,
    get_config,
    set_config,
    StoryflowError,
    ValidationError,
    GenerationError,
    TransportError,
    ServerRejectedError,
    MalformedResponseError,
)

__all__ = [
    # Version
    "__version__",
    # Orchestration
    "ProductionSession",
    "OperationResult",
    "OperationStatus",
    "StageController",
    "ArtifactStore",
    "AudioSession",
    "AudioState",
    "PlaybackDevice",
    "GenerationFailure",
    "FailureKind",
    # Generation services
    "GenerationClient",
    "get_service",
    "list_capabilities",
    # Models
    "Stage",
    "Character",
    "ScriptAnalysis",
    "Scene",
    "ScenePreferences",
    "ImageSettings",
    "AudioEngine",
    "AudioPreferences",
    "GeneratedAudio",
    "CaptionSettings",
    # Captions
    "build_cues",
    "render_captions",
    # Core
    "Config",
    "get_config",
    "set_config",
    "StoryflowError",
    "ValidationError",
    "GenerationError",
    "TransportError",
    "ServerRejectedError",
    "MalformedResponseError",
]
