import asyncio

import httpx
import pytest

from storyflow.core.exceptions import SecurityError, ServerRejectedError, TransportError
from storyflow.utils.downloads import download_asset

IMAGE_URL = "https://cdn.example.com/image-1.png"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200_000


def serve(body=PNG, status=200):
    return httpx.MockTransport(lambda request: httpx.Response(status, content=body))


def test_download_writes_file(tmp_path):
    path = asyncio.run(download_asset(IMAGE_URL, "scenes/scene-1.png", base_path=tmp_path, transport=serve()))
    saved = tmp_path / "scenes" / "scene-1.png"
    assert path == str(saved.resolve())
    assert saved.read_bytes() == PNG


def test_absolute_destination_defaults_to_its_directory(tmp_path):
    target = tmp_path / "narration.mp3"
    asyncio.run(download_asset("https://cdn.example.com/a.mp3", target, transport=serve(b"ID3")))
    assert target.read_bytes() == b"ID3"


def test_non_success_status(tmp_path):
    with pytest.raises(ServerRejectedError) as exc:
        asyncio.run(download_asset(IMAGE_URL, "a.png", base_path=tmp_path, transport=serve(b"", 404)))
    assert exc.value.status_code == 404
    assert not (tmp_path / "a.png").exists()


def test_connection_failure(tmp_path):
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        asyncio.run(download_asset(IMAGE_URL, "a.png", base_path=tmp_path, transport=httpx.MockTransport(refuse)))


class DroppedStream(httpx.AsyncByteStream):
    """Body that breaks off after the first chunk."""

    async def __aiter__(self):
        yield PNG[:1024]
        raise httpx.ReadError("connection reset")


def test_interrupted_download_leaves_no_file(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=DroppedStream()))

    with pytest.raises(TransportError):
        asyncio.run(download_asset(IMAGE_URL, "scenes/a.png", base_path=tmp_path, transport=transport))
    assert not (tmp_path / "scenes" / "a.png").exists()


@pytest.mark.parametrize("url,destination", [
    ("ftp://cdn.example.com/a.png", "a.png"),
    ("file:///etc/passwd", "a.png"),
    (IMAGE_URL, "../outside.png"),
    (IMAGE_URL, "notes.txt"),
])
def test_unsafe_downloads_are_blocked(tmp_path, url, destination):
    calls = []

    def record(request):
        calls.append(request)
        return httpx.Response(200, content=PNG)

    with pytest.raises(SecurityError):
        asyncio.run(download_asset(url, destination, base_path=tmp_path, transport=httpx.MockTransport(record)))
    assert calls == []
