"""
Upload module for PCS file uploads.

Direct single-request uploads, fingerprint-based rapid uploads, and block
uploads merged server-side into a superfile.
"""
from .facade import UploadFacade
from .coordinator import UploadCoordinator
from .models import (
    UploadResult,
    UploadConfig,
    UploadStrategy,
    UploadProgress,
    ContentFingerprint,
    BlockList,
    ChunkInfo,
)
from .protocols import (
    ChunkingStrategy,
    FileReaderProtocol,
    FileValidatorProtocol,
    FingerprintProtocol,
    BlockUploaderProtocol,
)
from .services import FingerprintEngine, fingerprint_bytes, UploadAPI

__all__ = [
    # Main classes
    'UploadFacade',
    'UploadCoordinator',
    'UploadAPI',
    'FingerprintEngine',
    'fingerprint_bytes',

    # Models
    'UploadResult',
    'UploadConfig',
    'UploadStrategy',
    'UploadProgress',
    'ContentFingerprint',
    'BlockList',
    'ChunkInfo',

    # Protocols
    'ChunkingStrategy',
    'FileReaderProtocol',
    'FileValidatorProtocol',
    'FingerprintProtocol',
    'BlockUploaderProtocol',
]
