"""
Session State
=============

In-memory state of one production session and the guards around it.

Components:
- ArtifactStore: single owner of every artifact
- GenerationQuota: per-scene image cap
- RequestGate: one in-flight request per artifact key
- SceneEditor / CharacterEditor: bulk replace vs. field edits
- AudioSession: narration playback state machine
"""

from .failures import FailureKind, GenerationFailure
from .store import ArtifactStore
from .quota import GenerationQuota
from .gate import RequestGate, request_key
from .editors import SceneEditor, CharacterEditor
from .audio import AudioSession, AudioState, PlaybackDevice

__all__ = [
    "FailureKind",
    "GenerationFailure",
    "ArtifactStore",
    "GenerationQuota",
    "RequestGate",
    "request_key",
    "SceneEditor",
    "CharacterEditor",
    "AudioSession",
    "AudioState",
    "PlaybackDevice",
]
