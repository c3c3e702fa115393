"""Response handler for API responses."""
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, TypeVar

from .request_builder import OperationRequest
from ..errors import PCSAPIError, PCSRedirectError
from ...exceptions import PCSDecodeError

T = TypeVar('T')


@dataclass(frozen=True)
class RawResponse:
    """
    Completed HTTP response as returned by the transport.

    Attributes:
        status: HTTP status code
        body: Full response body
        headers: Response headers
        url: Final URL (after redirects, if any were followed)
    """
    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ''

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299


class ResponseHandler:
    """Handles API responses."""

    @staticmethod
    def parse_error(
        response: RawResponse,
        request: Optional[OperationRequest] = None,
        path: Optional[str] = None
    ) -> PCSAPIError:
        """
        Builds the error for a failed response.

        Partial error bodies are tolerated; an unparseable body still yields
        an error carrying the HTTP status and raw body.
        """
        operation = request.operation if request else None
        if 300 <= response.status <= 399:
            return PCSRedirectError(
                response.status,
                response.headers.get('Location'),
                operation=operation,
                path=path
            )

        message = None
        code = None
        try:
            data = json.loads(response.body) if response.body else None
        except ValueError:
            data = None
        if isinstance(data, dict):
            if isinstance(data.get('error_msg'), str):
                message = data['error_msg']
            try:
                code = int(data['error_code']) if data.get('error_code') is not None else None
            except (TypeError, ValueError):
                code = None

        return PCSAPIError(
            response.status,
            message=message,
            error_code=code,
            body=response.body,
            headers=response.headers,
            operation=operation,
            path=path
        )

    @staticmethod
    def check_response(
        response: RawResponse,
        request: Optional[OperationRequest] = None,
        path: Optional[str] = None
    ) -> None:
        """Raises if the response status is outside [200, 299]."""
        if not response.ok:
            raise ResponseHandler.parse_error(response, request, path)

    @staticmethod
    def decode_json(
        response: RawResponse,
        model: Optional[Callable[[Any], T]] = None,
        request: Optional[OperationRequest] = None,
        path: Optional[str] = None
    ) -> Any:
        """
        Decodes a successful JSON body.

        Args:
            response: Successful response
            model: Optional callable building the result from decoded JSON
                (typically a model's ``from_dict``)

        Raises:
            PCSDecodeError: If the body is not JSON or does not fit the model
        """
        operation = request.operation if request else None
        try:
            data = json.loads(response.body)
        except ValueError as e:
            raise PCSDecodeError(
                f"Response is not valid JSON: {e}",
                body=response.body,
                operation=operation,
                path=path
            ) from e

        if model is None:
            return data
        try:
            return model(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PCSDecodeError(
                f"Unexpected response shape: {e}",
                body=response.body,
                operation=operation,
                path=path
            ) from e

    @staticmethod
    def process_response(
        response: RawResponse,
        model: Optional[Callable[[Any], T]] = None,
        raw: bool = False,
        request: Optional[OperationRequest] = None,
        path: Optional[str] = None
    ) -> Any:
        """
        Validates the status, then returns raw bytes or decoded JSON.

        Args:
            response: Response to process
            model: Optional decoder for the JSON payload
            raw: Return the body verbatim (downloads, thumbnails, playlists)
        """
        ResponseHandler.check_response(response, request, path)
        if raw:
            return response.body
        return ResponseHandler.decode_json(response, model, request, path)
