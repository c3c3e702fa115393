"""
Upload facade.

Provides a simplified interface for file uploads.
Follows Facade Pattern - hides complexity of the upload subsystem.
"""
from pathlib import Path
from typing import Callable, Optional, Union
import asyncio

from .coordinator import UploadCoordinator
from .models import UploadConfig, UploadProgress, UploadResult, UploadStrategy, DEFAULT_BLOCK_SIZE
from .protocols import ChunkingStrategy
from ..api.async_client import AsyncAPIClient
from ..api.config import RetryConfig
from ..api.request import RequestBuilder


class UploadFacade:
    """
    Simplified interface for PCS file uploads.

    This is the main entry point for uploading files.
    Hides strategy selection, chunking, fingerprinting and merging.

    Example:
        >>> from pcspy.core.upload import UploadFacade
        >>> uploader = UploadFacade(transport, builder)
        >>> result = await uploader.upload("video.mp4", "/apps/demo/video.mp4")
        >>> print(f"Uploaded: {result.path} via {result.strategy.value}")
    """

    def __init__(
        self,
        transport: AsyncAPIClient,
        builder: RequestBuilder,
        retry_config: Optional[RetryConfig] = None,
        chunking_strategy: Optional[ChunkingStrategy] = None
    ):
        """
        Initialize upload facade.

        Args:
            transport: Async transport
            builder: Request builder
            retry_config: Per-block retry limits
            chunking_strategy: Optional custom chunking strategy
        """
        self._transport = transport
        self._builder = builder
        self._retry_config = retry_config
        self._chunking = chunking_strategy

    def _coordinator(
        self,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None
    ) -> UploadCoordinator:
        return UploadCoordinator(
            transport=self._transport,
            builder=self._builder,
            retry_config=self._retry_config,
            chunking_strategy=self._chunking,
            progress_callback=progress_callback
        )

    async def upload(
        self,
        file_path: Union[str, Path],
        target_path: str,
        overwrite: bool = True,
        strategy: Union[UploadStrategy, str] = UploadStrategy.AUTO,
        block_size: int = DEFAULT_BLOCK_SIZE,
        max_concurrent_uploads: int = 4,
        try_rapid: bool = True,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None
    ) -> UploadResult:
        """
        Upload a local file to ``target_path``.

        Args:
            file_path: Path to file to upload
            target_path: Absolute remote path including the file name
            overwrite: Overwrite an existing file, else the service keeps both
            strategy: 'auto', 'direct', 'rapid' or 'block'
            block_size: Block size for block uploads
            max_concurrent_uploads: Parallel block uploads
            try_rapid: Let 'auto' try a rapid upload first
            timeout: Per-request timeout in seconds
            cancel_event: Stops a block upload from starting further blocks
            progress_callback: Called as blocks complete

        Returns:
            UploadResult with the remote file record

        Example:
            >>> result = await uploader.upload(
            ...     "backup.tar",
            ...     "/apps/demo/backup.tar",
            ...     strategy="block",
            ...     max_concurrent_uploads=8
            ... )
            >>> print(len(result.block_list))
        """
        config = UploadConfig(
            file_path=file_path,
            target_path=target_path,
            overwrite=overwrite,
            strategy=strategy,
            block_size=block_size,
            max_concurrent_uploads=max_concurrent_uploads,
            try_rapid=try_rapid,
            timeout=timeout,
            cancel_event=cancel_event
        )
        return await self._coordinator(progress_callback).upload(config)

    async def upload_with_config(
        self,
        config: UploadConfig,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None
    ) -> UploadResult:
        """
        Upload a file using explicit configuration.

        Args:
            config: Upload configuration

        Returns:
            UploadResult with the remote file record
        """
        return await self._coordinator(progress_callback).upload(config)
