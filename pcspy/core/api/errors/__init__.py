"""PCS API errors and exceptions."""
from .api_errors import PCSAPIError, PCSRedirectError, APIErrorCodes

__all__ = [
    'PCSAPIError',
    'PCSRedirectError',
    'APIErrorCodes',
]
