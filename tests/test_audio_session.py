import asyncio

import pytest

from storyflow.core.exceptions import AudioStateError
from storyflow.models.audio import GeneratedAudio
from storyflow.session.audio import AudioSession, AudioState, PlaybackDevice

TRACK = GeneratedAudio(url="https://cdn.example.com/narration.mp3", duration=3.0)


class FakeDevice(PlaybackDevice):
    def __init__(self, fail_load=False):
        self.fail_load = fail_load
        self.calls = []

    async def load(self, url):
        self.calls.append(("load", url))
        if self.fail_load:
            raise OSError("unsupported codec")

    async def play(self):
        self.calls.append(("play",))

    async def pause(self):
        self.calls.append(("pause",))

    async def unload(self):
        self.calls.append(("unload",))


def ready_session(device=None):
    session = AudioSession(device or FakeDevice())

    async def prepare():
        await session.begin_loading()
        session.complete(TRACK)

    asyncio.run(prepare())
    return session


def test_lifecycle_to_ready():
    session = AudioSession(FakeDevice())
    assert session.state == AudioState.IDLE
    asyncio.run(session.begin_loading())
    assert session.state == AudioState.LOADING
    session.complete(TRACK)
    assert session.state == AudioState.READY
    assert session.audio == TRACK


def test_play_pause_toggles_and_loads_once():
    device = FakeDevice()
    session = ready_session(device)

    async def scenario():
        assert await session.play_pause() == AudioState.PLAYING
        assert await session.play_pause() == AudioState.PAUSED
        assert await session.play_pause() == AudioState.PLAYING

    asyncio.run(scenario())
    assert device.calls == [("load", TRACK.url), ("play",), ("pause",), ("play",)]

    session.playback_finished()
    assert session.state == AudioState.READY


def test_device_load_error_fails_the_session():
    session = ready_session(FakeDevice(fail_load=True))
    assert asyncio.run(session.play_pause()) == AudioState.FAILED
    assert session.error == "unsupported codec"


def test_new_synthesis_releases_previous_track():
    device = FakeDevice()
    session = ready_session(device)

    async def scenario():
        await session.play_pause()
        await session.begin_loading()

    asyncio.run(scenario())
    assert device.calls[-1] == ("unload",)
    assert session.audio is None
    assert session.state == AudioState.LOADING

    session.fail("Failed to generate audio. Please try again.")
    assert session.state == AudioState.FAILED
    assert session.audio is None


def test_reset_without_loaded_track_does_not_touch_device():
    device = FakeDevice()
    session = ready_session(device)
    asyncio.run(session.reset())
    assert session.state == AudioState.IDLE
    assert device.calls == []


@pytest.mark.parametrize("operation", ["play_pause", "download"])
def test_illegal_transitions_from_idle(operation, tmp_path):
    session = AudioSession(FakeDevice())

    async def downloader(url, destination):
        return str(destination)

    async def scenario():
        if operation == "play_pause":
            await session.play_pause()
        else:
            await session.download(tmp_path / "a.mp3", downloader)

    with pytest.raises(AudioStateError) as exc:
        asyncio.run(scenario())
    assert exc.value.details["state"] == "idle"


def test_complete_and_fail_require_loading():
    session = AudioSession()
    with pytest.raises(AudioStateError):
        session.complete(TRACK)
    with pytest.raises(AudioStateError):
        session.fail("nope")
    with pytest.raises(AudioStateError):
        session.playback_finished()


def test_play_without_device():
    session = ready_session()
    session.device = None
    with pytest.raises(AudioStateError):
        asyncio.run(session.play_pause())


def test_download_keeps_state():
    saved = []

    async def downloader(url, destination):
        saved.append((url, destination))
        return destination

    session = ready_session()

    async def scenario():
        await session.play_pause()
        return await session.download("narration.mp3", downloader)

    assert asyncio.run(scenario()) == "narration.mp3"
    assert saved == [(TRACK.url, "narration.mp3")]
    assert session.state == AudioState.PLAYING
