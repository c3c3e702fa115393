"""
Upload coordinator.

Orchestrates direct, rapid and block uploads using injected dependencies.
"""
import asyncio
import time
from pathlib import Path
from typing import Callable, List, Optional

from .models import (
    BlockList,
    ChunkInfo,
    ContentFingerprint,
    UploadConfig,
    UploadProgress,
    UploadResult,
    UploadStrategy,
    RAPID_UPLOAD_MIN_SIZE,
)
from .protocols import (
    BlockUploaderProtocol,
    ChunkingStrategy,
    FileReaderProtocol,
    FingerprintProtocol,
)
from .services import AsyncFileReader, BlockUploader, FileValidator, FingerprintEngine, UploadAPI
from .strategies import FixedSizeChunkingStrategy
from ..api.async_client import AsyncAPIClient
from ..api.config import RetryConfig
from ..api.errors import PCSAPIError
from ..api.request import RequestBuilder
from ..exceptions import (
    BlockUploadError,
    PCSException,
    PCSUploadCancelledError,
    PCSValidationError,
)
from ..logging import get_logger

logger = get_logger('pcspy.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates the file upload process.

    Uses dependency injection for all components, making it:
    - Testable (mock dependencies)
    - Extensible (swap strategies)
    - Maintainable (single responsibility)

    Strategy choice for ``UploadStrategy.AUTO``:
    1. Files over 256 KiB with ``try_rapid``: fingerprint and try rapid
       upload, falling back on any API error.
    2. Files over ``block_threshold``: block upload plus merge.
    3. Everything else: direct upload.
    """

    def __init__(
        self,
        transport: AsyncAPIClient,
        builder: RequestBuilder,
        retry_config: Optional[RetryConfig] = None,
        chunking_strategy: Optional[ChunkingStrategy] = None,
        file_reader: Optional[FileReaderProtocol] = None,
        fingerprint_engine: Optional[FingerprintProtocol] = None,
        block_uploader: Optional[BlockUploaderProtocol] = None,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            transport: Async transport shared with the client
            builder: Request builder holding endpoints and token
            retry_config: Per-block retry limits
            chunking_strategy: Fixed chunking for every upload (default: from each UploadConfig)
            file_reader: File reader implementation
            fingerprint_engine: Fingerprint implementation
            block_uploader: Block uploader implementation
            progress_callback: Optional callback for progress updates
        """
        self._api = UploadAPI(transport, builder)
        self._chunking = chunking_strategy
        self._file_reader = file_reader or AsyncFileReader()
        self._fingerprint = fingerprint_engine or FingerprintEngine()
        self._block_uploader = block_uploader or BlockUploader(
            self._api, self._file_reader, retry_config
        )
        self._validator = FileValidator()
        self._progress_callback = progress_callback

    @property
    def api(self) -> UploadAPI:
        return self._api

    async def upload(self, config: UploadConfig) -> UploadResult:
        """
        Execute the complete upload process.

        Args:
            config: Upload configuration

        Returns:
            Upload result with the remote file record

        Raises:
            FileNotFoundError: If file doesn't exist
            PCSException: If the upload fails
        """
        path, file_size = self._validator.validate(config.file_path)
        file_size_mb = file_size / (1024 * 1024)
        logger.info(
            f"Starting upload: {path.name} ({file_size_mb:.2f} MB) -> {config.target_path} "
            f"[{config.strategy.value}]"
        )

        strategy = config.strategy
        if strategy is UploadStrategy.DIRECT:
            return await self._upload_direct(config, path, file_size)
        if strategy is UploadStrategy.RAPID:
            return await self._upload_rapid(config, path, file_size)
        if strategy is UploadStrategy.BLOCK:
            return await self._upload_blocks(config, path, file_size)
        return await self._upload_auto(config, path, file_size)

    async def _upload_auto(self, config: UploadConfig, path: Path, file_size: int) -> UploadResult:
        fingerprint = None
        if config.try_rapid and file_size > RAPID_UPLOAD_MIN_SIZE:
            fingerprint = await self._fingerprint.compute(path)
            try:
                record = await self._api.rapid_upload(
                    config.target_path, fingerprint, config.ondup, config.timeout
                )
            except PCSAPIError as e:
                logger.info(f"Rapid upload not possible, falling back: {e}")
            else:
                logger.info(f"Rapid upload matched: {record.path}")
                self._report_single(file_size)
                return UploadResult(record, UploadStrategy.RAPID, fingerprint=fingerprint)

        if file_size > config.block_threshold:
            chunking = self._chunking_for(config)
            if len(chunking.calculate_chunks(file_size)) >= 2:
                return await self._upload_blocks(config, path, file_size, fingerprint)

        return await self._upload_direct(config, path, file_size, fingerprint)

    async def _upload_direct(
        self,
        config: UploadConfig,
        path: Path,
        file_size: int,
        fingerprint: Optional[ContentFingerprint] = None
    ) -> UploadResult:
        if file_size > config.max_direct_size:
            raise PCSValidationError(
                f"Direct upload accepts at most {config.max_direct_size} bytes, got {file_size}",
                operation='file.upload',
                path=config.target_path
            )
        content = await self._file_reader.read_file(path)
        upload_start = time.time()
        record = await self._api.upload_file(
            config.target_path, content, path.name, config.ondup, config.timeout
        )
        logger.info(
            f"Direct upload completed in {time.time() - upload_start:.2f}s: {record.path}"
        )
        self._report_single(file_size)
        return UploadResult(record, UploadStrategy.DIRECT, fingerprint=fingerprint)

    async def _upload_rapid(self, config: UploadConfig, path: Path, file_size: int) -> UploadResult:
        # checked before hashing so small files never cost a read
        if file_size <= RAPID_UPLOAD_MIN_SIZE:
            raise PCSValidationError(
                f"Rapid upload needs more than {RAPID_UPLOAD_MIN_SIZE} bytes, got {file_size}",
                operation='file.rapidupload',
                path=config.target_path
            )
        fingerprint = await self._fingerprint.compute(path)
        record = await self._api.rapid_upload(
            config.target_path, fingerprint, config.ondup, config.timeout
        )
        self._report_single(file_size)
        return UploadResult(record, UploadStrategy.RAPID, fingerprint=fingerprint)

    def _chunking_for(self, config: UploadConfig) -> ChunkingStrategy:
        if self._chunking is not None:
            return self._chunking
        return FixedSizeChunkingStrategy(config.block_size, config.max_chunks)

    async def _upload_blocks(
        self,
        config: UploadConfig,
        path: Path,
        file_size: int,
        fingerprint: Optional[ContentFingerprint] = None
    ) -> UploadResult:
        chunking = self._chunking_for(config)
        boundaries = chunking.calculate_chunks(file_size)
        BlockList.validate_count(len(boundaries))

        block_size = chunking.effective_chunk_size(file_size)
        if block_size != config.block_size:
            logger.info(f"Block size raised to {block_size} bytes to stay within chunk limit")
        chunks = [ChunkInfo(i, start, end) for i, (start, end) in enumerate(boundaries)]
        logger.info(
            f"File split into {len(chunks)} blocks of {block_size / 1024:.0f} KB "
            f"(max {config.max_concurrent_uploads} parallel uploads)"
        )

        block_list = await self._upload_chunks(config, path, chunks, file_size)

        merge_start = time.time()
        record = await self._api.create_superfile(
            config.target_path, block_list, config.ondup, config.timeout
        )
        logger.info(
            f"Merged {len(block_list)} blocks in {time.time() - merge_start:.2f}s: {record.path}"
        )
        return UploadResult(
            record,
            UploadStrategy.BLOCK,
            fingerprint=fingerprint,
            block_list=block_list,
            block_size=block_size
        )

    async def _upload_chunks(
        self,
        config: UploadConfig,
        path: Path,
        chunks: List[ChunkInfo],
        total_bytes: int
    ) -> BlockList:
        """
        Upload chunks concurrently, recording each digest at its chunk index.

        Concurrency is bounded by ``config.max_concurrent_uploads``. A chunk
        that exhausts its retries cancels the rest.
        """
        total = len(chunks)
        slots: List[Optional[str]] = [None] * total
        semaphore = asyncio.Semaphore(config.max_concurrent_uploads)
        progress = UploadProgress(total_chunks=total, total_bytes=total_bytes)
        cancel_event = config.cancel_event

        async def upload_one(chunk: ChunkInfo) -> None:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return
                try:
                    slots[chunk.index] = await self._block_uploader.upload_block(
                        path, chunk, config.timeout
                    )
                except (PCSException, OSError) as e:
                    raise BlockUploadError(chunk.index, e, path=str(path)) from e
                progress.uploaded_chunks += 1
                progress.uploaded_bytes += chunk.size
                if self._progress_callback:
                    self._progress_callback(progress)

        await self._file_reader.open_file(path)
        try:
            tasks = [asyncio.create_task(upload_one(chunk)) for chunk in chunks]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        finally:
            await self._file_reader.close_file()

        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Upload cancelled after {progress.uploaded_chunks}/{total} blocks")
            raise PCSUploadCancelledError(progress.uploaded_chunks, total, path=str(path))

        uploaded_mb = total_bytes / (1024 * 1024)
        logger.info(f"All blocks uploaded: {total} blocks, {uploaded_mb:.2f} MB")
        return BlockList.from_slots(slots)

    def _report_single(self, file_size: int) -> None:
        if self._progress_callback:
            self._progress_callback(UploadProgress(
                total_chunks=1,
                uploaded_chunks=1,
                total_bytes=file_size,
                uploaded_bytes=file_size
            ))
