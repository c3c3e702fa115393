"""
Download service.

Streams file bodies from the download endpoint to disk or to the caller.
"""
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Mapping, Optional, Tuple, Union

import aiofiles

from ..api import operations
from ..api.async_client import AsyncAPIClient
from ..api.errors import PCSAPIError
from ..api.options import PathOptions
from ..api.request import RequestBuilder
from ..logging import get_logger, redact_url

DOWNLOAD_CHUNK_SIZE = 128 * 1024

_CONTENT_RANGE = re.compile(r"^bytes (?:(\d+)-\d+|\*)/(\d+|\*)$")


@dataclass(frozen=True)
class DownloadResult:
    """
    Outcome of a download to disk.

    Attributes:
        path: Remote path
        dest: Local file written
        size: Local file size after the download
        final_url: URL that served the body after redirects (token redacted)
        resumed: Bytes were appended to an existing partial file
    """
    path: str
    dest: Path
    size: int
    final_url: str = ''
    resumed: bool = False


class DownloadService:
    """
    Downloads remote files.

    Responsibilities:
    - Whole-file downloads streamed to disk, optionally resumed
    - Byte-range reads into memory
    - Raw chunk iteration for callers that stream elsewhere
    """

    def __init__(self, transport: AsyncAPIClient, builder: RequestBuilder):
        self._transport = transport
        self._builder = builder
        self._logger = get_logger('pcspy.download')

    async def download(
        self,
        path: str,
        dest: Union[str, Path],
        resume: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        timeout: Optional[float] = None
    ) -> DownloadResult:
        """
        Download a remote file to ``dest``.

        A resumed download is only continued when the server confirms the
        partial file is a prefix of the remote one: a 206 must start at the
        local size, and a 416 must report a remote size equal to it. Anything
        else downloads the file again from byte 0.

        Args:
            path: Remote file path
            dest: Local file path, or an existing directory to place the file in
            resume: Continue an existing partial file with a ``Range`` request
            progress_callback: Optional callback(downloaded_bytes, total_bytes)
            timeout: Request timeout in seconds

        Returns:
            DownloadResult describing the written file
        """
        dest = Path(dest)
        if dest.is_dir():
            dest = dest / path.rstrip('/').rsplit('/', 1)[-1]

        offset = dest.stat().st_size if resume and dest.exists() else 0
        if offset:
            result = await self._fetch(path, dest, offset, progress_callback, timeout)
            if result is not None:
                return result
            self._logger.warning(f"{dest} is not a prefix of {path}, downloading from start")

        return await self._fetch(path, dest, 0, progress_callback, timeout)

    async def _fetch(
        self,
        path: str,
        dest: Path,
        offset: int,
        progress_callback: Optional[Callable[[int, int], None]],
        timeout: Optional[float]
    ) -> Optional[DownloadResult]:
        """Write the body from ``offset``; None when the resume point is rejected."""
        headers = RequestBuilder.build_headers((offset, None)) if offset else None
        request = self._builder.build(operations.FILE_DOWNLOAD, PathOptions(path))

        try:
            async with self._transport.stream(
                request, headers=headers, timeout=timeout, path=path
            ) as response:
                appending = offset > 0 and response.status == 206
                if appending:
                    start, _ = parse_content_range(response.headers.get('Content-Range'))
                    if start != offset:
                        return None
                elif offset:
                    self._logger.info(f"Server ignored range for {path}, downloading from start")

                downloaded = offset if appending else 0
                total = downloaded + (response.content_length or 0)

                async with aiofiles.open(dest, 'ab' if appending else 'wb') as f:
                    async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                        await f.write(chunk)
                        downloaded += len(chunk)
                        if progress_callback:
                            progress_callback(downloaded, total)

                final_url = redact_url(str(response.url))
        except PCSAPIError as e:
            if offset and e.status == 416:
                _, remote_size = parse_content_range(_header(e.headers, 'Content-Range'))
                if remote_size != offset:
                    return None
                self._logger.info(f"{dest} already complete ({offset} bytes)")
                return DownloadResult(path, dest, offset, resumed=True)
            raise

        self._logger.info(f"Downloaded {path} -> {dest} ({downloaded} bytes)")
        return DownloadResult(path, dest, downloaded, final_url, appending)

    async def partial_download(
        self,
        path: str,
        start: int,
        end: int,
        timeout: Optional[float] = None
    ) -> bytes:
        """
        Read the inclusive byte span ``[start, end]`` of a remote file.

        Raises:
            PCSValidationError: If the range is invalid
        """
        headers = RequestBuilder.build_headers((start, end))
        request = self._builder.build(operations.FILE_DOWNLOAD, PathOptions(path))
        async with self._transport.stream(
            request, headers=headers, timeout=timeout, path=path
        ) as response:
            body = await response.read()
            if response.status == 200:
                # full body returned; cut the requested span out of it
                return body[start:end + 1]
            return body

    @asynccontextmanager
    async def open_stream(
        self,
        path: str,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
        byte_range: Optional[Tuple[int, Optional[int]]] = None,
        timeout: Optional[float] = None
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Open a remote file's body as a chunk iterator.

        The connection goes back to the pool when the context exits, whether
        or not the body was read to the end.
        """
        headers = RequestBuilder.build_headers(byte_range) if byte_range else None
        request = self._builder.build(operations.FILE_DOWNLOAD, PathOptions(path))
        async with self._transport.stream(
            request, headers=headers, timeout=timeout, path=path
        ) as response:
            yield response.content.iter_chunked(chunk_size)


def parse_content_range(value: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """
    Parse a ``Content-Range`` header into ``(start, total)``.

    ``bytes 100-199/1000`` gives ``(100, 1000)`` and ``bytes */1000`` gives
    ``(None, 1000)``. Unknown parts are None.
    """
    match = _CONTENT_RANGE.match(value or '')
    if not match:
        return None, None
    start = int(match.group(1)) if match.group(1) else None
    total = int(match.group(2)) if match.group(2) != '*' else None
    return start, total


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None
