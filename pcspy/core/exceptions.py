"""
Custom exceptions for PCS storage operations.

This module defines the exception tree shared by every layer of the client.
"""
from typing import Optional, Any


class PCSException(Exception):
    """Base exception for all PCS-related errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        operation: Optional[str] = None,
        path: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (if available)
            operation: Name of the operation that failed (e.g. 'file.upload')
            path: Remote or local path the operation was working on
        """
        self.message = message
        self.error_code = error_code
        self.operation = operation
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        context = []
        if self.operation:
            context.append(self.operation)
        if self.path:
            context.append(self.path)
        if context:
            return f"[{' '.join(context)}] {self.message}"
        return self.message


class PCSValidationError(PCSException, ValueError):
    """Raised for malformed input caught before any network call."""
    pass


class PCSTransportError(PCSException):
    """Raised for connection, timeout or TLS failures."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        operation: Optional[str] = None,
        path: Optional[str] = None
    ) -> None:
        self.cause = cause
        super().__init__(message, operation=operation, path=path)


class PCSDecodeError(PCSException):
    """
    Raised when a successful response does not match the expected shape.

    Indicates client/server contract drift rather than a remote failure.
    """

    def __init__(
        self,
        message: str,
        body: Any = None,
        operation: Optional[str] = None,
        path: Optional[str] = None
    ) -> None:
        self.body = body
        super().__init__(message, operation=operation, path=path)


class PCSShortIOError(PCSException):
    """Raised when fewer bytes were read or written than expected."""

    def __init__(
        self,
        message: str,
        expected: int,
        actual: int,
        operation: Optional[str] = None,
        path: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            expected: Number of bytes that should have been transferred
            actual: Number of bytes actually transferred
            operation: Name of the failed operation
            path: Local file path
        """
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{message} (expected {expected} bytes, got {actual})",
            operation=operation,
            path=path
        )


class PCSShortReadError(PCSShortIOError):
    """Fewer bytes could be read from a local file than its size."""
    pass


class PCSShortWriteError(PCSShortIOError):
    """Fewer bytes were copied into a request body than the file size."""
    pass


class BlockUploadError(PCSException):
    """Raised when a block could not be uploaded after all retries."""

    def __init__(
        self,
        chunk_index: int,
        cause: BaseException,
        path: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            chunk_index: Index of the chunk that failed
            cause: Last error raised while uploading the chunk
            path: Local source file path
        """
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(
            f"Block {chunk_index} failed: {cause}",
            error_code=getattr(cause, 'error_code', None),
            operation='file.upload.tmpfile',
            path=path
        )


class PCSUploadCancelledError(PCSException):
    """Raised when a block upload is cancelled before the merge step."""

    def __init__(
        self,
        uploaded_chunks: int,
        total_chunks: int,
        path: Optional[str] = None
    ) -> None:
        self.uploaded_chunks = uploaded_chunks
        self.total_chunks = total_chunks
        super().__init__(
            f"Upload cancelled after {uploaded_chunks}/{total_chunks} blocks",
            operation='file.upload.tmpfile',
            path=path
        )
