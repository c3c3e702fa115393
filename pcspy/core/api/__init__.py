"""PCS API module: transport, request construction and configuration."""
from .async_client import AsyncAPIClient
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, RetryConfig
from .endpoints import Endpoint, EndpointConfig
from .errors import PCSAPIError, PCSRedirectError, APIErrorCodes
from .operations import Operation
from .options import OnDup, SortOrder, SortBy, StreamType
from .request import RequestBuilder, OperationRequest, ResponseHandler, RawResponse

__all__ = [
    # Transport
    'AsyncAPIClient',
    
    # Requests
    'RequestBuilder',
    'OperationRequest',
    'ResponseHandler',
    'RawResponse',
    'Operation',
    'Endpoint',
    'EndpointConfig',
    
    # Options
    'OnDup',
    'SortOrder',
    'SortBy',
    'StreamType',
    
    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    
    # Errors
    'PCSAPIError',
    'PCSRedirectError',
    'APIErrorCodes',
]
