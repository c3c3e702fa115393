"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

from ...api.options import OnDup
from ...exceptions import PCSValidationError
from ...storage.models import FileRecord
from ...utils import validate_remote_path

# Leading slice hashed for rapid upload; also the rapid upload size floor.
SLICE_SIZE = 256 * 1024
RAPID_UPLOAD_MIN_SIZE = SLICE_SIZE

DEFAULT_BLOCK_SIZE = 4 * 1024 * 1024
MIN_BLOCKS = 2
MAX_BLOCKS = 1024

# Single-request uploads are read into memory; larger files go through blocks.
DIRECT_UPLOAD_MAX_SIZE = 2 * 1024 * 1024 * 1024


class UploadStrategy(Enum):
    """How a file reaches the service."""
    AUTO = 'auto'
    DIRECT = 'direct'
    RAPID = 'rapid'
    BLOCK = 'block'


@dataclass(frozen=True)
class ContentFingerprint:
    """
    Content digests used for rapid upload.

    Attributes:
        length: Content length in bytes
        whole_md5: Lowercase hex MD5 of the whole content
        crc32: Unsigned CRC32 (IEEE) of the whole content
        slice_md5: Lowercase hex MD5 of the first min(length, 256 KiB) bytes
    """
    length: int
    whole_md5: str
    crc32: int
    slice_md5: str

    @property
    def rapid_upload_eligible(self) -> bool:
        """Rapid upload requires content strictly larger than 256 KiB."""
        return self.length > RAPID_UPLOAD_MIN_SIZE

    @property
    def crc32_hex(self) -> str:
        return f"{self.crc32:08x}"


@dataclass(frozen=True)
class BlockList:
    """
    Ordered block digests for a superfile merge.

    Position ``i`` holds the MD5 returned for chunk ``i``; the service
    concatenates blocks in this order.
    """
    digests: Tuple[str, ...]

    def __post_init__(self):
        if not isinstance(self.digests, tuple):
            object.__setattr__(self, 'digests', tuple(self.digests))

    def __len__(self) -> int:
        return len(self.digests)

    def __iter__(self) -> Iterator[str]:
        return iter(self.digests)

    def __getitem__(self, index: int) -> str:
        return self.digests[index]

    @classmethod
    def from_slots(cls, slots: Sequence[Optional[str]]) -> 'BlockList':
        """
        Build from per-index result slots.

        Raises:
            PCSValidationError: If any slot is still empty
        """
        missing = [i for i, digest in enumerate(slots) if not digest]
        if missing:
            raise PCSValidationError(
                f"Block list incomplete, missing blocks {missing[:10]}"
            )
        return cls(tuple(slots))

    def validate(self) -> None:
        """
        Check the merge constraints.

        Raises:
            PCSValidationError: If the list has fewer than 2 or more than 1024 entries
        """
        self.validate_count(len(self.digests))

    @staticmethod
    def validate_count(count: int) -> None:
        """Check a block count against the merge bounds."""
        if count < MIN_BLOCKS:
            raise PCSValidationError(
                f"Block list has {count} block(s); merge needs at least {MIN_BLOCKS}, "
                f"use a direct upload instead",
                operation='file.createsuperfile'
            )
        if count > MAX_BLOCKS:
            raise PCSValidationError(
                f"Block list has {count} blocks; merge accepts at most {MAX_BLOCKS}",
                operation='file.createsuperfile'
            )

    def to_param(self) -> Dict[str, Any]:
        """Payload for the merge request's ``param`` form field."""
        return {'blocklist': list(self.digests)}


@dataclass(frozen=True)
class ChunkInfo:
    """
    Information about a file chunk.

    Attributes:
        index: Chunk index
        start: Start position in bytes
        end: End position in bytes (exclusive)
    """
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Returns chunk size."""
        return self.end - self.start


@dataclass
class UploadConfig:
    """
    Configuration for file upload.

    Attributes:
        file_path: Local file to upload
        target_path: Absolute remote path including the file name
        overwrite: Overwrite an existing target (else the service makes a renamed copy)
        strategy: Upload strategy, AUTO picks one from the file size
        block_size: Bytes per block for block uploads
        max_chunks: Upper bound on block count; block size grows to respect it (None = fixed)
        block_threshold: AUTO uses block upload above this size (defaults to block_size)
        max_direct_size: Largest file a direct upload accepts
        max_concurrent_uploads: Maximum concurrent block uploads
        try_rapid: AUTO attempts rapid upload first for eligible files
        timeout: Per-request timeout in seconds (None = transport default)
        cancel_event: Set to stop a block upload from starting further blocks
    """
    file_path: Union[str, Path]
    target_path: str
    overwrite: bool = True
    strategy: UploadStrategy = UploadStrategy.AUTO
    block_size: int = DEFAULT_BLOCK_SIZE
    max_chunks: Optional[int] = MAX_BLOCKS
    block_threshold: Optional[int] = None
    max_direct_size: int = DIRECT_UPLOAD_MAX_SIZE
    max_concurrent_uploads: int = 4
    try_rapid: bool = True
    timeout: Optional[float] = None
    cancel_event: Optional[asyncio.Event] = None

    def __post_init__(self):
        """Validate and normalize config."""
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)

        if isinstance(self.strategy, str):
            try:
                self.strategy = UploadStrategy(self.strategy)
            except ValueError:
                raise PCSValidationError(f"Unknown upload strategy: {self.strategy}")

        validate_remote_path(self.target_path)

        if self.block_size <= 0:
            raise PCSValidationError("Block size must be positive")
        if self.max_concurrent_uploads < 1:
            raise PCSValidationError("max_concurrent_uploads must be at least 1")
        if self.block_threshold is None:
            self.block_threshold = self.block_size

    @property
    def ondup(self) -> OnDup:
        return OnDup.from_overwrite(self.overwrite)


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a successful upload.

    The record has the same shape whichever strategy produced it.

    Attributes:
        record: Remote file record reported by the service
        strategy: Strategy that produced the record
        fingerprint: Content fingerprint, when one was computed
        block_list: Merged block digests (block uploads only)
        block_size: Effective block size (block uploads only)
    """
    record: FileRecord
    strategy: UploadStrategy
    fingerprint: Optional[ContentFingerprint] = None
    block_list: Optional[BlockList] = None
    block_size: Optional[int] = None

    @property
    def path(self) -> str:
        return self.record.path

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def md5(self) -> str:
        return self.record.md5


@dataclass
class UploadProgress:
    """
    Upload progress information.

    Attributes:
        total_chunks: Total number of chunks
        uploaded_chunks: Number of uploaded chunks
        total_bytes: Total file size
        uploaded_bytes: Bytes uploaded so far
    """
    total_chunks: int
    uploaded_chunks: int = 0
    total_bytes: int = 0
    uploaded_bytes: int = 0

    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_chunks == 0:
            return 0.0
        return (self.uploaded_chunks / self.total_chunks) * 100

    @property
    def is_complete(self) -> bool:
        """Returns True if upload is complete."""
        return self.uploaded_chunks >= self.total_chunks
