import os
import asyncio
import logging
from typing import Callable, Dict, Optional

import httpx

from ..errors import FetchError

logger = logging.getLogger(__name__)

# on_progress(bytes_loaded, bytes_total); total is 0 when unknown
ProgressCallback = Callable[[int, int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024


def is_url(base: str) -> bool:
    return base.startswith(("http://", "https://"))


def join_location(base: str, filename: str) -> str:
    """Join a base directory or URL with a file name."""
    if is_url(base):
        return f"{base.rstrip('/')}/{filename}"
    return os.path.join(base, filename)


async def _fetch_url(url: str, client: httpx.AsyncClient, on_progress: Optional[ProgressCallback],
                     chunk_size: int) -> bytes:
    async with client.stream("GET", url) as response:
        response.raise_for_status()
        total = int(response.headers.get("Content-Length", 0) or 0)
        data = bytearray()
        async for chunk in response.aiter_bytes(chunk_size):
            data.extend(chunk)
            # Content-Length counts encoded bytes, so report bytes received
            if on_progress is not None:
                on_progress(response.num_bytes_downloaded, total)
    return bytes(data)


async def _fetch_local(path: str, on_progress: Optional[ProgressCallback], chunk_size: int) -> bytes:
    total = os.path.getsize(path)
    data = bytearray()
    with open(path, "rb") as fid:
        while True:
            # Blocking reads happen off the event loop
            chunk = await asyncio.to_thread(fid.read, chunk_size)
            if not chunk:
                break
            data.extend(chunk)
            if on_progress is not None:
                on_progress(len(data), total)
    return bytes(data)


async def fetch_file(base: str, filename: str, *,
                     client: Optional[httpx.AsyncClient] = None,
                     on_progress: Optional[ProgressCallback] = None,
                     chunk_size: int = DEFAULT_CHUNK_SIZE,
                     timeout: Optional[float] = 30.0,
                     headers: Optional[Dict[str, str]] = None) -> bytes:
    """Fetch the raw bytes of one model file.

    Args:
        base: Local directory or http(s) base URL.
        filename: File name under `base` (e.g. 'cameras.bin').
        client: Optional shared AsyncClient for URLs. When omitted a
                client is created for this request.
        on_progress: Called with (bytes_loaded, bytes_total) after each chunk.
        chunk_size: Read size in bytes.
        timeout: Request timeout in seconds (URLs only).
        headers: Extra request headers (URLs only).

    Raises:
        FetchError: On any I/O, transport or HTTP status error.
    """
    location = join_location(base, filename)
    logger.debug("Fetching %s", location)

    try:
        if not is_url(base):
            data = await _fetch_local(location, on_progress, chunk_size)
        elif client is not None:
            data = await _fetch_url(location, client, on_progress, chunk_size)
        else:
            async with httpx.AsyncClient(timeout=timeout, headers=headers) as own_client:
                data = await _fetch_url(location, own_client, on_progress, chunk_size)
    except httpx.HTTPStatusError as e:
        raise FetchError(f"Failed to fetch {location}: HTTP {e.response.status_code}", location) from e
    except (httpx.HTTPError, OSError) as e:
        raise FetchError(f"Failed to fetch {location}: {e}", location) from e

    logger.debug("Fetched %s (%d bytes)", location, len(data))
    return data
