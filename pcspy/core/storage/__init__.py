"""Storage models for remote files and account state."""
from .models import (
    FileRecord,
    FileMeta,
    Quota,
    MoveCopyResult,
    RestoreResult,
    StreamFileList,
    DiffResult,
)

__all__ = [
    'FileRecord',
    'FileMeta',
    'Quota',
    'MoveCopyResult',
    'RestoreResult',
    'StreamFileList',
    'DiffResult',
]
