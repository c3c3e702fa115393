"""Request construction and response decoding."""
from .request_builder import RequestBuilder, OperationRequest
from .response_handler import ResponseHandler, RawResponse

__all__ = [
    'RequestBuilder',
    'OperationRequest',
    'ResponseHandler',
    'RawResponse',
]
