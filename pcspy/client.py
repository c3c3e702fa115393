"""
PCSClient - High-level async client for the PCS file API.

Example:
    >>> async with PCSClient("access-token") as pcs:
    ...     quota = await pcs.get_quota()
    ...     for record in await pcs.list_files("/apps/demo"):
    ...         print(record.path, record.size)
"""
import asyncio
from pathlib import Path
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .core.api import (
    AsyncAPIClient,
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    EndpointConfig,
    RequestBuilder,
    ResponseHandler,
    OnDup,
    SortOrder,
    SortBy,
    StreamType,
)
from .core.api import operations
from .core.api.operations import Operation
from .core.api.options import (
    AddTaskOptions,
    CancelTaskOptions,
    DiffOptions,
    EmptyRecycleOptions,
    ListFilesOptions,
    ListRecycleOptions,
    ListStreamOptions,
    ListTaskOptions,
    MoveCopyOptions,
    OperationOptions,
    PathOptions,
    QueryTaskOptions,
    RestoreOptions,
    SearchOptions,
    StreamingOptions,
    ThumbnailOptions,
)
from .core.download import DownloadService, DownloadResult, DOWNLOAD_CHUNK_SIZE
from .core.exceptions import PCSValidationError
from .core.logging import get_logger
from .core.storage import (
    FileRecord,
    FileMeta,
    Quota,
    MoveCopyResult,
    RestoreResult,
    StreamFileList,
    DiffResult,
)
from .core.upload import (
    UploadFacade,
    UploadAPI,
    UploadResult,
    UploadProgress,
    UploadStrategy,
    ContentFingerprint,
    BlockList,
    FingerprintEngine,
)
from .core.upload.models import DEFAULT_BLOCK_SIZE


class PCSClient:
    """
    High-level async client for the PCS file API.

    One client holds one access token and one connection pool. Every call
    completes its requests before returning.

    Basic use:
        >>> async with PCSClient(token) as pcs:
        ...     result = await pcs.upload_file("report.pdf", "/apps/demo/report.pdf")
        ...     meta = await pcs.get_meta(result.path)

    With custom configuration:
        >>> config = PCSClient.create_config(proxy="http://proxy:8080", timeout=60)
        >>> pcs = PCSClient(token, config=config)
    """

    def __init__(self, access_token: str, config: Optional[APIConfig] = None):
        """
        Initialize PCS client.

        Args:
            access_token: Already-issued access token
            config: Optional API configuration

        Raises:
            PCSValidationError: If the token is empty
        """
        self._config = config or APIConfig.default()
        self._logger = get_logger('pcspy.client')
        self._builder = RequestBuilder(self._config.endpoints, access_token)
        self._api = AsyncAPIClient(self._config)
        self._uploads = UploadAPI(self._api, self._builder)
        self._downloads = DownloadService(self._api, self._builder)

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def create_config(
        proxy: Optional[str] = None,
        proxy_user: Optional[str] = None,
        proxy_pass: Optional[str] = None,
        timeout: float = 300,
        max_retries: int = 3,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        endpoints: Optional[EndpointConfig] = None
    ) -> APIConfig:
        """
        Create API configuration with common options.

        Args:
            proxy: Proxy URL (e.g., "http://proxy:8080")
            proxy_user: Proxy username
            proxy_pass: Proxy password
            timeout: Request timeout in seconds
            max_retries: Maximum retries per upload block
            verify_ssl: Whether to verify SSL certificates
            user_agent: Custom user agent string
            endpoints: Alternative base URLs

        Returns:
            APIConfig instance
        """
        proxy_config = None
        if proxy:
            proxy_config = ProxyConfig(
                url=proxy,
                username=proxy_user,
                password=proxy_pass
            )

        return APIConfig(
            endpoints=endpoints or EndpointConfig(),
            proxy=proxy_config,
            timeout=TimeoutConfig(total=timeout),
            retry=RetryConfig(max_retries=max_retries),
            ssl=SSLConfig(verify=verify_ssl),
            user_agent=user_agent or 'pcspy/1.0.0'
        )

    @property
    def config(self) -> APIConfig:
        return self._config

    # =========================================================================
    # Context manager
    # =========================================================================

    async def __aenter__(self) -> 'PCSClient':
        await self._api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client and release pooled connections."""
        await self._api.close()

    # =========================================================================
    # Request helpers
    # =========================================================================

    async def _get(
        self,
        operation: Operation,
        options: Optional[OperationOptions] = None,
        model: Optional[Callable[[Any], Any]] = None,
        raw: bool = False,
        path: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Any:
        request = self._builder.build(operation, options)
        response = await self._api.get(request, timeout=timeout, path=path)
        return ResponseHandler.process_response(response, model, raw, request, path)

    async def _post_form(
        self,
        operation: Operation,
        options: Optional[OperationOptions] = None,
        form: Optional[Dict[str, str]] = None,
        model: Optional[Callable[[Any], Any]] = None,
        path: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Any:
        request = self._builder.build(operation, options)
        response = await self._api.post_form(request, form, timeout=timeout, path=path)
        return ResponseHandler.process_response(response, model, request=request, path=path)

    @staticmethod
    def _list_param(items: Sequence[Dict[str, Any]], what: str) -> Dict[str, str]:
        if not items:
            raise PCSValidationError(f"Batch {what} needs at least one entry")
        return RequestBuilder.build_param_form({'list': list(items)})

    # =========================================================================
    # Account
    # =========================================================================

    async def get_quota(self, timeout: Optional[float] = None) -> Quota:
        """Get total and used space."""
        return await self._get(operations.QUOTA_INFO, model=Quota.from_dict, timeout=timeout)

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload_file(
        self,
        local_path: Union[str, Path],
        remote_path: str,
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
        Upload a local file.

        Args:
            local_path: File to upload
            remote_path: Absolute remote path including the file name
            overwrite: Overwrite an existing file, else the service keeps both
            strategy: 'auto', 'direct', 'rapid' or 'block'
            block_size: Block size for block uploads
            max_concurrent_uploads: Parallel block uploads
            try_rapid: Let 'auto' try a rapid upload first
            timeout: Per-request timeout in seconds
            cancel_event: Stops a block upload from starting further blocks
            progress_callback: Optional callback(UploadProgress)

        Returns:
            UploadResult; ``result.record`` is the remote FileRecord
        """
        facade = UploadFacade(self._api, self._builder, retry_config=self._config.retry)
        return await facade.upload(
            local_path,
            remote_path,
            overwrite=overwrite,
            strategy=strategy,
            block_size=block_size,
            max_concurrent_uploads=max_concurrent_uploads,
            try_rapid=try_rapid,
            timeout=timeout,
            cancel_event=cancel_event,
            progress_callback=progress_callback
        )

    async def upload_block(self, data: bytes, timeout: Optional[float] = None) -> FileRecord:
        """Upload bytes as a temporary block; ``record.md5`` identifies it for a merge."""
        return await self._uploads.upload_tmpfile(data, timeout=timeout)

    async def create_superfile(
        self,
        remote_path: str,
        block_list: Union[BlockList, Sequence[str]],
        overwrite: bool = True,
        timeout: Optional[float] = None
    ) -> FileRecord:
        """Merge previously uploaded blocks, in order, into ``remote_path``."""
        if not isinstance(block_list, BlockList):
            block_list = BlockList(tuple(block_list))
        return await self._uploads.create_superfile(
            remote_path, block_list, OnDup.from_overwrite(overwrite), timeout
        )

    async def rapid_upload(
        self,
        remote_path: str,
        fingerprint: ContentFingerprint,
        overwrite: bool = True,
        timeout: Optional[float] = None
    ) -> FileRecord:
        """Create ``remote_path`` from content the service already stores."""
        return await self._uploads.rapid_upload(
            remote_path, fingerprint, OnDup.from_overwrite(overwrite), timeout
        )

    async def fingerprint(self, local_path: Union[str, Path]) -> ContentFingerprint:
        """Compute the rapid-upload fingerprint of a local file."""
        return await FingerprintEngine().compute(local_path)

    # =========================================================================
    # Download
    # =========================================================================

    async def download(
        self,
        remote_path: str,
        dest: Union[str, Path] = ".",
        resume: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        timeout: Optional[float] = None
    ) -> DownloadResult:
        """
        Download a file.

        Args:
            remote_path: Remote file path
            dest: Local destination path or directory
            resume: Continue a partial local file
            progress_callback: Optional callback(downloaded_bytes, total_bytes)
            timeout: Request timeout in seconds

        Returns:
            DownloadResult
        """
        return await self._downloads.download(
            remote_path, dest, resume=resume,
            progress_callback=progress_callback, timeout=timeout
        )

    async def partial_download(
        self,
        remote_path: str,
        start: int,
        end: int,
        timeout: Optional[float] = None
    ) -> bytes:
        """Read bytes ``start`` through ``end`` (inclusive) of a remote file."""
        return await self._downloads.partial_download(remote_path, start, end, timeout)

    def download_stream(
        self,
        remote_path: str,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
        byte_range: Optional[Tuple[int, Optional[int]]] = None,
        timeout: Optional[float] = None
    ) -> AsyncContextManager[AsyncIterator[bytes]]:
        """
        Open a remote file's body for chunked reading.

        The connection is released when the block exits, including on an
        early ``break``.

        Example:
            >>> async with pcs.download_stream("/apps/demo/movie.mp4") as chunks:
            ...     async for chunk in chunks:
            ...         sink.write(chunk)
        """
        return self._downloads.open_stream(remote_path, chunk_size, byte_range, timeout)

    # =========================================================================
    # Files and directories
    # =========================================================================

    async def mkdir(self, remote_path: str) -> FileRecord:
        """Create a directory."""
        return await self._post_form(
            operations.FILE_MKDIR, PathOptions(remote_path),
            model=FileRecord.from_dict, path=remote_path
        )

    async def get_meta(self, remote_path: str) -> FileMeta:
        """Get metadata of a file or directory."""
        return await self._post_form(
            operations.FILE_META, PathOptions(remote_path),
            model=FileMeta.from_dict, path=remote_path
        )

    async def batch_get_meta(self, remote_paths: Sequence[str]) -> List[FileMeta]:
        """Get metadata of several paths in one request."""
        form = self._list_param([{'path': p} for p in remote_paths], 'meta')
        return await self._post_form(
            operations.FILE_META, form=form, model=FileMeta.list_from_dict
        )

    async def list_files(
        self,
        remote_path: str,
        order: Optional[SortOrder] = None,
        by: Optional[SortBy] = None,
        limit: Optional[str] = None
    ) -> List[FileRecord]:
        """
        List a directory.

        Args:
            remote_path: Directory path
            order: Sort direction
            by: Sort key
            limit: ``"n1-n2"`` selects entries n1 (inclusive) to n2 (exclusive)
        """
        return await self._get(
            operations.FILE_LIST,
            ListFilesOptions(remote_path, order=order, by=by, limit=limit),
            model=FileRecord.list_from_dict,
            path=remote_path
        )

    async def move(self, from_path: str, to_path: str) -> MoveCopyResult:
        return await self._post_form(
            operations.FILE_MOVE, MoveCopyOptions(from_path, to_path),
            model=MoveCopyResult.from_dict, path=from_path
        )

    async def copy(self, from_path: str, to_path: str) -> MoveCopyResult:
        return await self._post_form(
            operations.FILE_COPY, MoveCopyOptions(from_path, to_path),
            model=MoveCopyResult.from_dict, path=from_path
        )

    async def batch_move(self, pairs: Sequence[Tuple[str, str]]) -> MoveCopyResult:
        """Move several ``(from, to)`` pairs in one request."""
        form = self._list_param([{'from': src, 'to': dst} for src, dst in pairs], 'move')
        return await self._post_form(
            operations.FILE_MOVE, form=form, model=MoveCopyResult.from_dict
        )

    async def batch_copy(self, pairs: Sequence[Tuple[str, str]]) -> MoveCopyResult:
        """Copy several ``(from, to)`` pairs in one request."""
        form = self._list_param([{'from': src, 'to': dst} for src, dst in pairs], 'copy')
        return await self._post_form(
            operations.FILE_COPY, form=form, model=MoveCopyResult.from_dict
        )

    async def delete(self, remote_path: str) -> None:
        """Delete a file or directory (it moves to the recycle bin)."""
        await self._post_form(
            operations.FILE_DELETE, PathOptions(remote_path), path=remote_path
        )

    async def batch_delete(self, remote_paths: Sequence[str]) -> None:
        form = self._list_param([{'path': p} for p in remote_paths], 'delete')
        await self._post_form(operations.FILE_DELETE, form=form)

    async def search(self, remote_path: str, word: str, recursive: bool = False) -> List[FileRecord]:
        """Find files whose name contains ``word``. Directories are not matched."""
        return await self._get(
            operations.FILE_SEARCH,
            SearchOptions(remote_path, word, recursive),
            model=FileRecord.list_from_dict,
            path=remote_path
        )

    async def diff(self, cursor: str = 'null') -> DiffResult:
        """
        Changes since ``cursor``.

        Start with ``'null'`` and pass ``result.cursor`` to the next call.
        """
        return await self._get(operations.FILE_DIFF, DiffOptions(cursor), model=DiffResult.from_dict)

    # =========================================================================
    # Media
    # =========================================================================

    async def thumbnail(
        self,
        remote_path: str,
        width: int,
        height: int,
        quality: Optional[int] = None
    ) -> bytes:
        """Get an image thumbnail as raw bytes."""
        return await self._get(
            operations.THUMBNAIL_GENERATE,
            ThumbnailOptions(remote_path, width, height, quality),
            raw=True,
            path=remote_path
        )

    async def streaming(self, remote_path: str, stream_type: str) -> bytes:
        """Get a transcoded playlist, e.g. ``stream_type='M3U8_640_480'``."""
        return await self._get(
            operations.FILE_STREAMING,
            StreamingOptions(remote_path, stream_type),
            raw=True,
            path=remote_path
        )

    async def list_stream(
        self,
        stream_type: Union[StreamType, str],
        start: Optional[int] = None,
        limit: Optional[int] = None,
        filter_path: Optional[str] = None
    ) -> StreamFileList:
        """List media files of one type."""
        return await self._get(
            operations.STREAM_LIST,
            ListStreamOptions(StreamType(stream_type), start, limit, filter_path),
            model=StreamFileList.from_dict
        )

    # =========================================================================
    # Offline download
    # =========================================================================

    async def add_offline_download_task(
        self,
        save_path: str,
        source_url: str,
        rate_limit: Optional[int] = None,
        timeout: Optional[int] = None,
        callback: Optional[str] = None,
        expires: Optional[int] = None
    ) -> int:
        """Ask the service to fetch ``source_url`` into ``save_path``. Returns the task id."""
        return await self._post_form(
            operations.CLOUD_DL_ADD_TASK,
            AddTaskOptions(save_path, source_url, expires, rate_limit, timeout, callback),
            model=lambda data: int(data['task_id']),
            path=save_path
        )

    async def query_offline_download_task(
        self,
        task_ids: Union[str, Sequence[Union[str, int]]],
        op_type: int = 1,
        expires: Optional[int] = None
    ) -> Dict[str, Any]:
        """Task info (``op_type=0``) or progress (``op_type=1``) for one or more tasks."""
        if not isinstance(task_ids, str):
            task_ids = ','.join(str(task_id) for task_id in task_ids)
        return await self._post_form(
            operations.CLOUD_DL_QUERY_TASK, QueryTaskOptions(task_ids, op_type, expires)
        )

    async def list_offline_download_task(self, **filters) -> Dict[str, Any]:
        """List tasks; keyword filters match ListTaskOptions fields."""
        return await self._post_form(operations.CLOUD_DL_LIST_TASK, ListTaskOptions(**filters))

    async def cancel_offline_download_task(self, task_id: Union[str, int], expires: Optional[int] = None) -> None:
        await self._post_form(
            operations.CLOUD_DL_CANCEL_TASK, CancelTaskOptions(str(task_id), expires)
        )

    # =========================================================================
    # Recycle bin
    # =========================================================================

    async def list_recycle(self, start: Optional[int] = None, limit: Optional[int] = None) -> List[FileRecord]:
        return await self._get(
            operations.FILE_LIST_RECYCLE,
            ListRecycleOptions(start, limit),
            model=FileRecord.list_from_dict
        )

    async def restore(self, fs_id: Union[str, int]) -> RestoreResult:
        return await self._post_form(
            operations.FILE_RESTORE, RestoreOptions(str(fs_id)), model=RestoreResult.from_dict
        )

    async def batch_restore(self, fs_ids: Sequence[Union[str, int]]) -> RestoreResult:
        form = self._list_param([{'fs_id': str(fs_id)} for fs_id in fs_ids], 'restore')
        return await self._post_form(operations.FILE_RESTORE, form=form, model=RestoreResult.from_dict)

    async def empty_recycle(self) -> None:
        """Permanently delete everything in the recycle bin."""
        await self._post_form(operations.FILE_DELETE, EmptyRecycleOptions())
