"""Storage domain models."""
from .file_record import FileRecord, FileMeta
from .results import Quota, MoveCopyResult, RestoreResult, StreamFileList, DiffResult

__all__ = [
    'FileRecord',
    'FileMeta',
    'Quota',
    'MoveCopyResult',
    'RestoreResult',
    'StreamFileList',
    'DiffResult',
]
