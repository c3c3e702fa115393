"""Upload models."""
from .upload_models import (
    UploadResult,
    UploadConfig,
    UploadStrategy,
    ContentFingerprint,
    BlockList,
    ChunkInfo,
    UploadProgress,
    SLICE_SIZE,
    RAPID_UPLOAD_MIN_SIZE,
    DEFAULT_BLOCK_SIZE,
    MIN_BLOCKS,
    MAX_BLOCKS,
    DIRECT_UPLOAD_MAX_SIZE,
)

__all__ = [
    'UploadResult',
    'UploadConfig',
    'UploadStrategy',
    'ContentFingerprint',
    'BlockList',
    'ChunkInfo',
    'UploadProgress',
    'SLICE_SIZE',
    'RAPID_UPLOAD_MIN_SIZE',
    'DEFAULT_BLOCK_SIZE',
    'MIN_BLOCKS',
    'MAX_BLOCKS',
    'DIRECT_UPLOAD_MAX_SIZE',
]
