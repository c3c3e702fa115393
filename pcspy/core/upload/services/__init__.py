"""Upload services module."""
from .file_service import FileValidator, AsyncFileReader, build_file_form
from .fingerprint_service import FingerprintEngine, fingerprint_bytes
from .upload_service import UploadAPI
from .chunk_service import BlockUploader

__all__ = [
    'FileValidator',
    'AsyncFileReader',
    'build_file_form',
    'FingerprintEngine',
    'fingerprint_bytes',
    'UploadAPI',
    'BlockUploader',
]
