"""
File validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
import asyncio
import os
from pathlib import Path
from typing import Tuple, Optional, Union

import aiofiles
import aiohttp

from ...exceptions import PCSShortReadError, PCSShortWriteError
from ...logging import get_logger


class FileValidator:
    """
    Validates files before upload.

    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Get file size
    """

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")

        return path, path.stat().st_size


class AsyncFileReader:
    """
    Asynchronous file reader for chunk-based reading.

    Uses aiofiles for non-blocking I/O. A handle opened with
    :meth:`open_file` is shared by concurrent chunk reads; seek and read
    happen under a lock so reads never interleave.
    """

    def __init__(self):
        """Initialize file reader."""
        self._logger = get_logger('pcspy.upload.file')
        self._file_handle = None
        self._current_file_path: Optional[Path] = None
        self._lock = asyncio.Lock()

    async def open_file(self, file_path: Path) -> None:
        """
        Open file for reading. Call this before reading chunks.

        Args:
            file_path: Path to the file to open
        """
        if self._file_handle is not None and self._current_file_path == file_path:
            return

        if self._file_handle is not None:
            await self.close_file()

        self._file_handle = await aiofiles.open(file_path, 'rb')
        self._current_file_path = file_path

    async def close_file(self) -> None:
        """Close the currently open file."""
        if self._file_handle is not None:
            await self._file_handle.close()
            self._file_handle = None
            self._current_file_path = None

    async def read_chunk(
        self,
        file_path: Path,
        start: int,
        end: int
    ) -> bytes:
        """
        Read a chunk from a file.

        Reuses the open handle when there is one, otherwise opens and
        closes the file for this read.

        Args:
            file_path: Path to the file
            start: Start position in bytes
            end: End position in bytes (exclusive)

        Returns:
            Chunk data

        Raises:
            PCSShortReadError: If fewer than ``end - start`` bytes were read
        """
        chunk_size = end - start

        if self._file_handle is not None and self._current_file_path == file_path:
            async with self._lock:
                await self._file_handle.seek(start)
                data = await self._file_handle.read(chunk_size)
        else:
            async with aiofiles.open(file_path, 'rb') as f:
                await f.seek(start)
                data = await f.read(chunk_size)

        if len(data) != chunk_size:
            raise PCSShortReadError(
                f"Short read at offset {start}",
                expected=chunk_size,
                actual=len(data),
                operation='file.upload.tmpfile',
                path=str(file_path)
            )
        self._logger.debug(f"Read chunk: {start}-{end} ({len(data)} bytes)")
        return data

    @staticmethod
    def _expected_size(handle) -> int:
        return os.fstat(handle.fileno()).st_size

    async def read_file(self, file_path: Path) -> bytes:
        """
        Read an entire file for a single-request upload.

        Raises:
            PCSShortWriteError: If the bytes read differ from the size at open time
        """
        async with aiofiles.open(file_path, 'rb') as f:
            expected = self._expected_size(f)
            data = await f.read()

        if len(data) != expected:
            raise PCSShortWriteError(
                "Upload body does not match file size",
                expected=expected,
                actual=len(data),
                operation='file.upload',
                path=str(file_path)
            )
        return data


def build_file_form(content: bytes, filename: str) -> aiohttp.FormData:
    """
    Multipart body with a single ``file`` field.

    A FormData can be sent only once; build a new one per attempt.
    """
    form = aiohttp.FormData()
    form.add_field(
        'file',
        content,
        filename=filename,
        content_type='application/octet-stream'
    )
    return form
