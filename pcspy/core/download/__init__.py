"""Download module."""
from .service import DownloadService, DownloadResult, DOWNLOAD_CHUNK_SIZE, parse_content_range

__all__ = [
    'DownloadService',
    'DownloadResult',
    'DOWNLOAD_CHUNK_SIZE',
    'parse_content_range',
]
