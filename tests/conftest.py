"""Shared fixtures: fake generation services behind an httpx MockTransport."""

import itertools
import json
import sys
from pathlib import Path

import httpx
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from storyflow.api.client import GenerationClient
from storyflow.core.config import Config, ServicesConfig, reset_config
from storyflow.workflow.production import ProductionSession


ANALYSIS = {
    "story_title": "The Lighthouse Keeper",
    "characters": [
        {"name": "Mara", "description": "An old keeper"},
        {"name": "Tom", "description": "A lost sailor"},
    ],
    "setting": {"location": "A rocky island", "time": "Winter, 1890"},
    "plot": ["A storm arrives", "A ship runs aground", "Mara lights the lamp"],
    "moral": "Keep the light on for others",
}

SCENES = [
    {
        "scene": f"Scene {i}",
        "setting": "Island",
        "time_of_day": "Night",
        "background": "Waves",
        "mood": "Tense",
        "expressiveness": "High",
        "visual_details": "Lamp glow",
        "timeline": f"Act {i}",
    }
    for i in range(1, 4)
]


class FakeServices:
    """
    Routes requests by path to configurable responders and records every call.

    A responder takes the request and returns an httpx.Response, or a coroutine
    resolving to one, or raises an httpx exception.
    """

    SCRIPT = "/script/analyze"
    SCENES = "/scenes/generate"
    IMAGE = "/scenes/image"
    SPEECH = "/audio/synthesize"

    def __init__(self):
        self.calls = []
        self._image_ids = itertools.count(1)
        self.responders = {
            self.SCRIPT: lambda request: httpx.Response(200, json=ANALYSIS),
            self.SCENES: lambda request: httpx.Response(200, json=SCENES),
            self.IMAGE: self._image,
            self.SPEECH: lambda request: httpx.Response(
                200, json={"audio_url": "https://cdn.example.com/narration.mp3", "duration": 12.5}
            ),
        }

    def _image(self, request):
        return httpx.Response(
            200,
            json={"status": "success", "image_url": f"https://cdn.example.com/image-{next(self._image_ids)}.png"},
        )

    def handler(self, request: httpx.Request):
        payload = json.loads(request.content) if request.content else None
        self.calls.append((request.url.path, payload))
        return self.responders[request.url.path](request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path):
        return [payload for called, payload in self.calls if called == path]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("STORYFLOW_API_KEY", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def client(services):
    return GenerationClient(ServicesConfig(), transport=services.transport())


@pytest.fixture
def downloads():
    """Fake downloader that records (url, destination) and returns the destination."""
    saved = []

    async def downloader(url, destination):
        saved.append((url, str(destination)))
        return str(destination)

    downloader.saved = saved
    return downloader


@pytest.fixture
def session(client, downloads):
    return ProductionSession(client, config=Config(), downloader=downloads)
