"""
Upload requests.

Single-shot wrappers for the four upload-related service calls. Retries
belong to callers.
"""
from typing import Any, Dict, Optional

from ..models import BlockList, ContentFingerprint, RAPID_UPLOAD_MIN_SIZE
from .file_service import build_file_form
from ...api import operations
from ...api.async_client import AsyncAPIClient
from ...api.options import FileOptions, OnDup, RapidUploadOptions, TmpFileOptions
from ...api.request import RequestBuilder, ResponseHandler
from ...exceptions import PCSValidationError
from ...logging import get_logger
from ...storage.models import FileRecord

BLOCK_FILENAME = 'block'


def _block_record(data: Dict[str, Any]) -> FileRecord:
    record = FileRecord.from_dict(data)
    if not record.md5:
        raise ValueError("block upload response has no md5")
    return record


class UploadAPI:
    """
    Issues upload, tmpfile, rapidupload and createsuperfile requests.

    Responsibilities:
    - Build each request against its fixed endpoint
    - Check local preconditions before any network call
    - Decode the resulting file record
    """

    def __init__(self, transport: AsyncAPIClient, builder: RequestBuilder):
        self._transport = transport
        self._builder = builder
        self._logger = get_logger('pcspy.upload')

    async def upload_file(
        self,
        target_path: str,
        content: bytes,
        filename: str,
        ondup: OnDup = OnDup.OVERWRITE,
        timeout: Optional[float] = None
    ) -> FileRecord:
        """Single-request multipart upload to ``target_path``."""
        request = self._builder.build(
            operations.FILE_UPLOAD, FileOptions(target_path, ondup)
        )
        response = await self._transport.post_multipart(
            request,
            build_file_form(content, filename),
            timeout=timeout,
            path=target_path
        )
        return ResponseHandler.process_response(
            response, FileRecord.from_dict, request=request, path=target_path
        )

    async def upload_tmpfile(
        self,
        content: bytes,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> FileRecord:
        """
        Upload one block as a temporary file.

        Returns:
            Record whose ``md5`` identifies the block for a later merge

        Raises:
            PCSDecodeError: If the response carries no md5
        """
        request = self._builder.build(operations.FILE_UPLOAD, TmpFileOptions())
        response = await self._transport.post_multipart(
            request,
            build_file_form(content, BLOCK_FILENAME),
            timeout=timeout,
            path=path
        )
        return ResponseHandler.process_response(
            response, _block_record, request=request, path=path
        )

    async def rapid_upload(
        self,
        target_path: str,
        fingerprint: ContentFingerprint,
        ondup: OnDup = OnDup.OVERWRITE,
        timeout: Optional[float] = None
    ) -> FileRecord:
        """
        Create ``target_path`` from content the service already holds.

        Raises:
            PCSValidationError: If the content is 256 KiB or smaller (no request is sent)
            PCSAPIError: If the service has no matching content
        """
        if not fingerprint.rapid_upload_eligible:
            raise PCSValidationError(
                f"Rapid upload needs more than {RAPID_UPLOAD_MIN_SIZE} bytes, "
                f"got {fingerprint.length}",
                operation=operations.FILE_RAPID_UPLOAD.name,
                path=target_path
            )
        request = self._builder.build(
            operations.FILE_RAPID_UPLOAD,
            RapidUploadOptions.from_fingerprint(target_path, fingerprint, ondup)
        )
        response = await self._transport.post_form(
            request, timeout=timeout, path=target_path
        )
        return ResponseHandler.process_response(
            response, FileRecord.from_dict, request=request, path=target_path
        )

    async def create_superfile(
        self,
        target_path: str,
        block_list: BlockList,
        ondup: OnDup = OnDup.OVERWRITE,
        timeout: Optional[float] = None
    ) -> FileRecord:
        """
        Merge uploaded blocks into ``target_path`` in list order.

        Sending the same block list and path again yields the same file.

        Raises:
            PCSValidationError: If the list has fewer than 2 or more than 1024 blocks
        """
        block_list.validate()
        request = self._builder.build(
            operations.FILE_CREATE_SUPERFILE, FileOptions(target_path, ondup)
        )
        self._logger.debug(f"Merging {len(block_list)} blocks into {target_path}")
        response = await self._transport.post_form(
            request,
            RequestBuilder.build_param_form(block_list.to_param()),
            timeout=timeout,
            path=target_path
        )
        return ResponseHandler.process_response(
            response, FileRecord.from_dict, request=request, path=target_path
        )
