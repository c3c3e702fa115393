"""
Block upload service.

Handles uploading individual blocks as temporary files, with retries.
"""
from pathlib import Path
from typing import Optional
import time

from ..models import ChunkInfo
from ..protocols import FileReaderProtocol
from .upload_service import UploadAPI
from ...api.config import RetryConfig
from ...api.retry import ExponentialBackoffStrategy, RetryStrategy
from ...exceptions import PCSException
from ...logging import get_logger


class BlockUploader:
    """
    Uploads one block of a file and returns its digest.

    Each block is read and sent again on every attempt, so a failed block
    never affects blocks already uploaded.

    Responsibilities:
    - Read the block's bytes
    - Send them as a tmpfile upload
    - Retry transient failures with backoff
    """

    def __init__(
        self,
        api: UploadAPI,
        file_reader: FileReaderProtocol,
        retry_config: Optional[RetryConfig] = None,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        """
        Initialize block uploader.

        Args:
            api: Upload request wrapper
            file_reader: Reader used to fetch block bytes
            retry_config: Retry limits and delays
            retry_strategy: Decides which errors are retried
        """
        self._api = api
        self._reader = file_reader
        self._retry_config = retry_config or RetryConfig()
        self._retry = retry_strategy or ExponentialBackoffStrategy(self._retry_config)
        self._logger = get_logger('pcspy.upload.chunk')

    async def upload_block(
        self,
        file_path: Path,
        chunk: ChunkInfo,
        timeout: Optional[float] = None
    ) -> str:
        """
        Upload a single block.

        Args:
            file_path: Local source file
            chunk: Block boundaries
            timeout: Per-request timeout in seconds

        Returns:
            MD5 digest the service reports for the block

        Raises:
            PCSException: Last error once retries are exhausted
        """
        retry_count = 0
        while True:
            upload_start = time.time()
            try:
                data = await self._reader.read_chunk(file_path, chunk.start, chunk.end)
                record = await self._api.upload_tmpfile(
                    data, timeout=timeout, path=str(file_path)
                )
            except PCSException as e:
                if not self._retry.should_retry(e, retry_count, self._retry_config.max_retries):
                    self._logger.error(f"Block {chunk.index} failed: {e}")
                    raise
                self._logger.warning(
                    f"Block {chunk.index} attempt {retry_count + 1} failed, retrying: {e}"
                )
                await self._retry.wait_async(retry_count)
                retry_count += 1
                continue

            elapsed = time.time() - upload_start
            speed_kbps = (chunk.size / 1024 / elapsed) if elapsed > 0 else 0
            self._logger.debug(
                f"Block {chunk.index} uploaded in {elapsed:.2f}s ({speed_kbps:.1f} KB/s)"
            )
            return record.md5
