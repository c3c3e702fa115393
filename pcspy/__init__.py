"""
pcspy - Async Python client for the PCS cloud storage file API.

Usage:
    >>> from pcspy import PCSClient
    >>>
    >>> async with PCSClient("access-token") as pcs:
    ...     result = await pcs.upload_file("backup.tar", "/apps/demo/backup.tar")
    ...     print(result.strategy, result.record.md5)
"""
import logging
from .client import PCSClient

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    EndpointConfig,
    Endpoint,
    AsyncAPIClient,
    OnDup,
    SortOrder,
    SortBy,
    StreamType,
    PCSAPIError,
    PCSRedirectError,
)
from .core.exceptions import (
    PCSException,
    PCSValidationError,
    PCSTransportError,
    PCSDecodeError,
    PCSShortIOError,
    PCSShortReadError,
    PCSShortWriteError,
    BlockUploadError,
    PCSUploadCancelledError,
)
from .core.storage import FileRecord, FileMeta, Quota
from .core.upload import (
    UploadResult,
    UploadStrategy,
    UploadProgress,
    ContentFingerprint,
    BlockList,
    fingerprint_bytes,
)
from .core.download import DownloadResult

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for pcspy modules.

    This ensures that all pcspy loggers are properly configured
    to show log messages at the specified level.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'pcspy',
        'pcspy.api',
        'pcspy.client',
        'pcspy.download',
        'pcspy.upload',
        'pcspy.upload.chunk',
        'pcspy.upload.coordinator',
        'pcspy.upload.file',
        'pcspy.upload.fingerprint',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'PCSClient',
    'setup_logging',
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'EndpointConfig',
    'Endpoint',
    'AsyncAPIClient',
    'OnDup',
    'SortOrder',
    'SortBy',
    'StreamType',
    # Models
    'FileRecord',
    'FileMeta',
    'Quota',
    'UploadResult',
    'UploadStrategy',
    'UploadProgress',
    'ContentFingerprint',
    'BlockList',
    'DownloadResult',
    'fingerprint_bytes',
    # Errors
    'PCSException',
    'PCSValidationError',
    'PCSTransportError',
    'PCSAPIError',
    'PCSRedirectError',
    'PCSDecodeError',
    'PCSShortIOError',
    'PCSShortReadError',
    'PCSShortWriteError',
    'BlockUploadError',
    'PCSUploadCancelledError',
]
