"""
Media loading for Slack file uploads.

Remote media is fetched with httpx; local files are only readable from
explicitly allowed root directories.
"""

import mimetypes
from pathlib import Path
from typing import Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

import httpx
import structlog

from slack_relay.core.exceptions import MediaLoadError
from slack_relay.models.types import LoadedMedia

logger = structlog.get_logger(__name__)

DEFAULT_FILE_NAME = "file"


def _file_name_from(path: str) -> str:
    name = Path(unquote(path)).name
    return name or DEFAULT_FILE_NAME


def _check_size(source: str, size: int, max_bytes: Optional[int]) -> None:
    if max_bytes is not None and size > max_bytes:
        raise MediaLoadError(source, f"media exceeds {max_bytes} bytes", size_bytes=size)


async def _read_capped(response: httpx.Response, url: str, max_bytes: Optional[int]) -> bytes:
    declared = response.headers.get("content-length")
    if declared and declared.isdigit():
        _check_size(url, int(declared), max_bytes)

    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk)
        # stop reading as soon as the cap is passed
        _check_size(url, len(buffer), max_bytes)
    return bytes(buffer)


async def _load_remote(
        url: str,
        max_bytes: Optional[int],
        http_client: Optional[httpx.AsyncClient]
) -> LoadedMedia:
    async def _fetch(client: httpx.AsyncClient) -> Tuple[bytes, Optional[str]]:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            content = await _read_capped(response, url, max_bytes)
            return content, response.headers.get("content-type")

    try:
        if http_client is not None:
            content, content_type = await _fetch(http_client)
        else:
            async with httpx.AsyncClient(follow_redirects=True, timeout=30) as client:
                content, content_type = await _fetch(client)
    except httpx.HTTPError as e:
        raise MediaLoadError(url, str(e)) from e

    if content_type:
        content_type = content_type.split(";")[0].strip()

    return LoadedMedia(
        buffer=content,
        content_type=content_type or None,
        file_name=_file_name_from(urlparse(url).path),
    )


def _load_local(raw_path: str, max_bytes: Optional[int], local_roots: Sequence[str]) -> LoadedMedia:
    if not local_roots:
        raise MediaLoadError(raw_path, "local media is not allowed")

    path = Path(raw_path).expanduser().resolve()
    roots = [Path(root).expanduser().resolve() for root in local_roots]
    if not any(path == root or path.is_relative_to(root) for root in roots):
        raise MediaLoadError(raw_path, "path is outside the allowed media roots")
    if not path.is_file():
        raise MediaLoadError(raw_path, "file does not exist")

    _check_size(raw_path, path.stat().st_size, max_bytes)
    content_type, _ = mimetypes.guess_type(path.name)
    return LoadedMedia(buffer=path.read_bytes(), content_type=content_type, file_name=path.name)


async def load_web_media(
        url: str,
        max_bytes: Optional[int] = None,
        local_roots: Sequence[str] = (),
        http_client: Optional[httpx.AsyncClient] = None
) -> LoadedMedia:
    """
    Load media from a URL or an allowed local path.

    Args:
        url: http(s) URL, file:// URL or local path
        max_bytes: Optional size cap
        local_roots: Directories local files may be read from
        http_client: Optional client for remote fetches

    Raises:
        MediaLoadError: When the media cannot be loaded or is too large
    """
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        media = await _load_remote(url, max_bytes, http_client)
    elif parsed.scheme == "file":
        media = _load_local(unquote(parsed.path), max_bytes, local_roots)
    elif parsed.scheme and len(parsed.scheme) > 1:
        raise MediaLoadError(url, f"unsupported scheme: {parsed.scheme}")
    else:
        media = _load_local(url, max_bytes, local_roots)

    logger.debug(
        "Media loaded",
        source=url,
        file_name=media.file_name,
        size_bytes=len(media.buffer),
        content_type=media.content_type
    )
    return media
