"""
Audio Session
=============

State machine over the single generated narration track.

    IDLE -> LOADING -> READY | FAILED
    READY -> PLAYING <-> PAUSED
    any  -> IDLE (reset)

The playback device is an external collaborator; the session only tells it
to load, play, pause and unload.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Union, Callable, Awaitable

from ..core.exceptions import AudioStateError
from ..models.audio import GeneratedAudio

logger = logging.getLogger(__name__)


class AudioState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    FAILED = "failed"


class PlaybackDevice(ABC):
    """Audio output primitive provided by the host platform."""

    @abstractmethod
    async def load(self, url: str) -> None:
        """Prepare the track at ``url`` for playback."""
        pass

    @abstractmethod
    async def play(self) -> None:
        pass

    @abstractmethod
    async def pause(self) -> None:
        pass

    @abstractmethod
    async def unload(self) -> None:
        """Release the loaded track."""
        pass


Downloader = Callable[[str, Union[str, Path]], Awaitable[str]]


class AudioSession:
    """Owns the current GeneratedAudio and its playback state."""

    def __init__(self, device: Optional[PlaybackDevice] = None):
        self.device = device
        self._state = AudioState.IDLE
        self._audio: Optional[GeneratedAudio] = None
        self._loaded = False
        self._error: Optional[str] = None

    @property
    def state(self) -> AudioState:
        return self._state

    @property
    def audio(self) -> Optional[GeneratedAudio]:
        return self._audio

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def has_audio(self) -> bool:
        return self._state in (AudioState.READY, AudioState.PLAYING, AudioState.PAUSED)

    # -------------------------------------------------------------------------
    # Synthesis lifecycle
    # -------------------------------------------------------------------------

    async def reset(self) -> None:
        """Release the current track and return to IDLE."""
        if self._loaded and self.device is not None:
            await self.device.unload()
        self._loaded = False
        self._audio = None
        self._error = None
        self._state = AudioState.IDLE

    async def begin_loading(self) -> None:
        """Release the previous track and wait for a new synthesis."""
        await self.reset()
        self._state = AudioState.LOADING

    def complete(self, audio: GeneratedAudio) -> None:
        self._expect("complete", AudioState.LOADING)
        self._audio = audio
        self._state = AudioState.READY
        logger.info(f"Audio ready: {audio.url}")

    def fail(self, message: str) -> None:
        self._expect("fail", AudioState.LOADING)
        self._error = message
        self._state = AudioState.FAILED
        logger.warning(f"Audio failed: {message}")

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    async def play_pause(self) -> AudioState:
        """
        Toggle playback, loading the track on first use.

        A device load error moves the session to FAILED.
        """
        if self._state == AudioState.PLAYING:
            await self._require_device().pause()
            self._state = AudioState.PAUSED
            return self._state

        self._expect("play_pause", AudioState.READY, AudioState.PAUSED)
        device = self._require_device()

        if not self._loaded:
            try:
                await device.load(self._audio.url)
            except Exception as e:
                logger.error(f"Audio device could not load {self._audio.url}: {e}")
                self._error = str(e) or "Audio could not be loaded"
                self._state = AudioState.FAILED
                return self._state
            self._loaded = True

        await device.play()
        self._state = AudioState.PLAYING
        return self._state

    def playback_finished(self) -> None:
        """Called by the device when the track reaches its end."""
        self._expect("playback_finished", AudioState.PLAYING)
        self._state = AudioState.READY

    async def download(self, destination: Union[str, Path], downloader: Downloader) -> str:
        """
        Save the current track. Playback state is not changed.

        Returns:
            Path of the saved file
        """
        self._expect("download", AudioState.READY, AudioState.PLAYING, AudioState.PAUSED)
        return await downloader(self._audio.url, destination)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _expect(self, operation: str, *states: AudioState) -> None:
        if self._state not in states:
            raise AudioStateError(
                f"Cannot {operation.replace('_', ' ')} while audio is {self._state.value}",
                state=self._state.value,
                operation=operation,
            )

    def _require_device(self) -> PlaybackDevice:
        if self.device is None:
            raise AudioStateError(
                "No playback device attached",
                state=self._state.value,
                operation="play_pause",
            )
        return self.device

    def to_dict(self):
        return {
            "state": self._state.value,
            "audio": self._audio.to_dict() if self._audio else None,
            "error": self._error,
        }
