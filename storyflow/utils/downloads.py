"""
Asset Downloads
===============

Save generated images and narration tracks to local disk.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import aiofiles
import httpx

from ..core.exceptions import TransportError, ServerRejectedError
from ..core.security import PathValidator, validate_url

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


async def download_asset(
    url: str,
    destination: Union[str, Path],
    base_path: Optional[Union[str, Path]] = None,
    timeout: float = 120.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Stream a generated asset to disk.

    Args:
        url: http(s) URL of the image or audio file
        destination: Target file path, relative to ``base_path`` or absolute inside it
        base_path: Directory the file must stay in (defaults to the destination's directory)
        timeout: Request timeout in seconds
        transport: Custom httpx transport

    Returns:
        Path to the saved file

    Raises:
        SecurityError: If the URL or destination is not allowed
        TransportError: If the asset could not be fetched
        ServerRejectedError: If the server answered with a non-success status
    """
    validate_url(url)

    if base_path is None:
        base_path = Path(destination).parent if Path(destination).is_absolute() else Path(".")
    output_path = PathValidator(base_path).validate_media(destination)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    raise ServerRejectedError(
                        f"Download failed with status {response.status_code}",
                        status_code=response.status_code,
                        capability="download",
                    )
                try:
                    async with aiofiles.open(output_path, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await f.write(chunk)
                except BaseException:
                    # A truncated asset must not look like a finished download
                    output_path.unlink(missing_ok=True)
                    raise

    except httpx.TimeoutException:
        raise TransportError(
            "Download timed out",
            timeout_seconds=timeout,
            capability="download",
        )
    except httpx.TransportError as e:
        raise TransportError(f"Download failed: {e}", capability="download")

    logger.info(f"Asset downloaded to: {output_path}")
    return str(output_path)
