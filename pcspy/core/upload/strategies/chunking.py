"""
Chunking strategies for block uploads.

Implements Strategy Pattern for different chunking algorithms.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..models import DEFAULT_BLOCK_SIZE
from ...exceptions import PCSValidationError

GROWTH_STEP = 1024 * 1024


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """Calculate chunk boundaries."""
        pass

    @abstractmethod
    def effective_chunk_size(self, file_size: int) -> int:
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking with an optional cap on the chunk count.

    Every chunk except the last has the same size. When ``max_chunks`` is
    set and the file would need more chunks, the chunk size grows in 1 MiB
    steps until the count fits.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_BLOCK_SIZE,
        max_chunks: Optional[int] = None
    ):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each chunk in bytes
            max_chunks: Upper bound on the number of chunks (None = unbounded)
        """
        if chunk_size <= 0:
            raise PCSValidationError("Chunk size must be positive")
        if max_chunks is not None and max_chunks < 1:
            raise PCSValidationError("max_chunks must be at least 1")
        self.chunk_size = chunk_size
        self.max_chunks = max_chunks

    def effective_chunk_size(self, file_size: int) -> int:
        """Chunk size after growth for ``max_chunks``."""
        if self.max_chunks is None or file_size <= self.chunk_size * self.max_chunks:
            return self.chunk_size
        needed = -(-file_size // self.max_chunks)
        steps = -(-(needed - self.chunk_size) // GROWTH_STEP)
        return self.chunk_size + steps * GROWTH_STEP

    def calculate_chunks(self, file_size: int) -> List[Tuple[int, int]]:
        """
        Calculate fixed-size chunk boundaries.

        Args:
            file_size: Total file size in bytes

        Returns:
            List of (start, end) tuples
        """
        if file_size == 0:
            return []

        chunk_size = self.effective_chunk_size(file_size)
        chunks = []
        position = 0

        while position < file_size:
            end = min(position + chunk_size, file_size)
            chunks.append((position, end))
            position = end

        return chunks
