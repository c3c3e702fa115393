"""PCS API error codes and exceptions."""
from typing import Dict, Optional

from ...exceptions import PCSException


class APIErrorCodes:
    """PCS service error codes."""
    
    ERROR_CODES: Dict[int, str] = {
        110: 'Access token invalid or no longer valid',
        111: 'Access token expired',
        31023: 'Invalid parameter',
        31061: 'File already exists',
        31062: 'File name is invalid',
        31063: 'Parent directory does not exist',
        31064: 'No permission to access this file',
        31066: 'File does not exist',
        31079: 'File md5 not found, use the upload API instead',
        31081: 'Superfile creation failed',
        31082: 'Superfile block list is empty',
        31112: 'Storage quota exceeded',
    }
    
    @classmethod
    def get_message(cls, code: Optional[int]) -> str:
        """Gets error message for error code."""
        if code is None:
            return "Unknown error"
        return cls.ERROR_CODES.get(code, f"Unknown error: {code}")


class PCSAPIError(PCSException):
    """
    Exception raised for any non-2xx response from the service.
    
    Carries the service's message and code when the body could be parsed,
    and always the HTTP status, raw body and response headers.
    """
    
    def __init__(
        self,
        status: int,
        message: Optional[str] = None,
        error_code: Optional[int] = None,
        body: bytes = b'',
        operation: Optional[str] = None,
        path: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.status = status
        self.body = body
        self.headers = dict(headers or {})
        if not message:
            if error_code is not None:
                message = APIErrorCodes.get_message(error_code)
            else:
                message = f"HTTP {status}: {body[:200].decode('utf-8', 'replace')}"
        super().__init__(message, error_code, operation=operation, path=path)
    
    @property
    def is_server_error(self) -> bool:
        """True for 5xx responses."""
        return self.status >= 500


class PCSRedirectError(PCSAPIError):
    """Raised for a 3xx response when redirects are not followed."""
    
    def __init__(
        self,
        status: int,
        location: Optional[str],
        operation: Optional[str] = None,
        path: Optional[str] = None
    ):
        self.location = location
        super().__init__(
            status,
            message=f"Redirected ({status}) to {location}",
            operation=operation,
            path=path
        )
