"""Request builder for API requests."""
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from ..endpoints import Endpoint, EndpointConfig
from ..operations import Operation
from ..options import OperationOptions
from ...exceptions import PCSValidationError
from ...logging import redact_url


@dataclass(frozen=True)
class OperationRequest:
    """
    Fully built request description.

    Attributes:
        operation: Operation name, e.g. 'file.upload'
        endpoint: Endpoint the request targets
        method: Service method name
        url: Complete URL including query string
        params: Ordered query parameters (access token first)
    """
    operation: str
    endpoint: Endpoint
    method: str
    url: str
    params: Tuple[Tuple[str, str], ...]

    @property
    def redacted_url(self) -> str:
        """URL safe for logs."""
        return redact_url(self.url)

    def param(self, name: str) -> Optional[str]:
        """Returns the value of a query parameter, or None."""
        for key, value in self.params:
            if key == name:
                return value
        return None


class RequestBuilder:
    """
    Builds API requests.

    Holds only immutable inputs (endpoint URLs and the access token); every
    call to :meth:`build` starts from a clean path and query.
    """

    def __init__(self, endpoints: EndpointConfig, access_token: str):
        """Initializes request builder."""
        if not access_token:
            raise PCSValidationError("Access token must not be empty")
        self._endpoints = endpoints
        self._access_token = access_token

    @property
    def endpoints(self) -> EndpointConfig:
        return self._endpoints

    def build(
        self,
        operation: Operation,
        options: Optional[OperationOptions] = None
    ) -> OperationRequest:
        """
        Builds a request for an operation.

        Args:
            operation: Entry from the operation table
            options: Typed option set for the operation

        Returns:
            New OperationRequest

        Raises:
            PCSValidationError: If a required option is missing
        """
        params = [
            ('access_token', self._access_token),
            ('method', operation.method),
        ]
        if options is not None:
            params.extend(options.to_params())

        base = self._endpoints.url_for(operation.endpoint)
        url = f"{base}/{operation.resource}?{urlencode(params)}"
        return OperationRequest(
            operation=operation.name,
            endpoint=operation.endpoint,
            method=operation.method,
            url=url,
            params=tuple(params)
        )

    @staticmethod
    def build_headers(byte_range: Optional[Tuple[int, Optional[int]]] = None) -> Dict[str, str]:
        """
        Builds request headers.

        Args:
            byte_range: Inclusive (start, end) span; end may be None for open ranges
        """
        headers = {}
        if byte_range is not None:
            start, end = byte_range
            if start < 0 or (end is not None and end < start):
                raise PCSValidationError(f"Invalid byte range {start}-{end}")
            headers['Range'] = f"bytes={start}-{'' if end is None else end}"
        return headers

    @staticmethod
    def build_param_form(payload: Any) -> Dict[str, str]:
        """Builds the form body carrying a JSON-encoded ``param`` field."""
        return {'param': json.dumps(payload, separators=(',', ':'))}
