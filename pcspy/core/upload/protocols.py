"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import Protocol, List, Tuple, Optional, Union
from pathlib import Path

from .models import ContentFingerprint, ChunkInfo


class ChunkingStrategy(Protocol):
    """
    Protocol for file chunking strategies.

    Allows different chunking algorithms to be plugged in.
    """

    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """
        Calculate chunk boundaries for a file.

        Args:
            file_size: Total file size in bytes

        Returns:
            List of (start, end) tuples representing chunk boundaries
        """
        ...

    def effective_chunk_size(self, file_size: int) -> int:
        """Chunk size actually used for a file of this size."""
        ...


class FileReaderProtocol(Protocol):
    """Protocol for file reading operations."""

    async def open_file(self, file_path: Path) -> None:
        ...

    async def close_file(self) -> None:
        ...

    async def read_chunk(
        self,
        file_path: Path,
        start: int,
        end: int
    ) -> bytes:
        """
        Read a chunk from a file.

        Args:
            file_path: Path to the file
            start: Start position in bytes
            end: End position in bytes (exclusive)

        Returns:
            Exactly ``end - start`` bytes

        Raises:
            PCSShortReadError: If fewer bytes could be read
        """
        ...

    async def read_file(self, file_path: Path) -> bytes:
        """Read a whole file, checking the byte count against its size at open time."""
        ...


class FileValidatorProtocol(Protocol):
    """Protocol for file validation operations."""

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated path, file size)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a valid file
        """
        ...


class FingerprintProtocol(Protocol):
    """Protocol for content fingerprinting."""

    async def compute(self, file_path: Union[str, Path]) -> ContentFingerprint:
        ...


class BlockUploaderProtocol(Protocol):
    """Protocol for uploading one block of a file."""

    async def upload_block(
        self,
        file_path: Path,
        chunk: ChunkInfo,
        timeout: Optional[float] = None
    ) -> str:
        """
        Upload a single block as a temporary file.

        Returns:
            MD5 digest the service reports for the block
        """
        ...
