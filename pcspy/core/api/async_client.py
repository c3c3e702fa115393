"""
Async PCS transport.

Pooled aiohttp client issuing GET, POST, POST-form and multipart requests.
Requests are sent exactly once; retry policy belongs to callers.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
from urllib.parse import urlencode

import aiohttp

from .config import APIConfig
from .request import OperationRequest, RawResponse, ResponseHandler
from ..exceptions import PCSTransportError
from ..logging import get_logger

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'


class AsyncAPIClient:
    """
    Asynchronous HTTP transport for the PCS API.

    Features:
    - Connection pooling shared by concurrent requests
    - Configurable proxy, SSL, timeouts
    - Per-request timeout override
    - Redirects followed or surfaced per config, including on streams

    Example:
        >>> async with AsyncAPIClient(APIConfig.default()) as transport:
        ...     response = await transport.get(request)
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize async transport.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._logger = get_logger('pcspy.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                **self._config.get_connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                **self._config.get_session_kwargs()
            )
        return self._session

    async def close(self):
        """Close transport and release pooled connections."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

        if self._connector and not self._connector.closed:
            await self._connector.close()
        self._connector = None

    def _proxy(self) -> Optional[str]:
        return self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None

    @staticmethod
    def _timeout(timeout: Optional[float]) -> Optional[aiohttp.ClientTimeout]:
        if timeout is None:
            return None
        return aiohttp.ClientTimeout(total=timeout)

    async def _send(
        self,
        verb: str,
        request: OperationRequest,
        data=None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> RawResponse:
        """Send one request and read the full body."""
        session = await self._ensure_session()
        kwargs = {
            'data': data,
            'headers': headers,
            'proxy': self._proxy(),
            'allow_redirects': self._config.follow_redirects,
            'max_redirects': self._config.max_redirects,
        }
        client_timeout = self._timeout(timeout)
        if client_timeout is not None:
            kwargs['timeout'] = client_timeout

        self._logger.debug(f"{verb} {request.redacted_url}")
        try:
            async with session.request(verb, request.url, **kwargs) as response:
                body = await response.read()
                self._logger.debug(
                    f"{request.operation} -> HTTP {response.status} ({len(body)} bytes)"
                )
                return RawResponse(
                    status=response.status,
                    body=body,
                    headers=dict(response.headers),
                    url=str(response.url)
                )
        except asyncio.TimeoutError as e:
            self._logger.error(f"Timeout in {request.operation}")
            raise PCSTransportError(
                "Request timed out", cause=e, operation=request.operation, path=path
            ) from e
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error in {request.operation}: {e}")
            raise PCSTransportError(
                f"Network error: {e}", cause=e, operation=request.operation, path=path
            ) from e

    async def get(
        self,
        request: OperationRequest,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> RawResponse:
        """Issue a GET request."""
        return await self._send('GET', request, headers=headers, timeout=timeout, path=path)

    async def post(
        self,
        request: OperationRequest,
        body: bytes,
        content_type: str,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> RawResponse:
        """Issue a POST request with a raw body."""
        return await self._send(
            'POST', request,
            data=body,
            headers={'Content-Type': content_type},
            timeout=timeout,
            path=path
        )

    async def post_form(
        self,
        request: OperationRequest,
        form: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> RawResponse:
        """Issue a POST request with form-encoded parameters."""
        body = urlencode(form or {}).encode('utf-8')
        return await self.post(request, body, FORM_CONTENT_TYPE, timeout=timeout, path=path)

    async def post_multipart(
        self,
        request: OperationRequest,
        form: aiohttp.FormData,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> RawResponse:
        """Issue a multipart POST. A FormData instance can only be sent once."""
        return await self._send('POST', request, data=form, timeout=timeout, path=path)

    @asynccontextmanager
    async def stream(
        self,
        request: OperationRequest,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        path: Optional[str] = None
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """
        Open a streaming GET, yielding the response once its status is 2xx.

        Redirects are followed when ``config.follow_redirects`` is set; the
        final URL is available as ``response.url``. Otherwise a 3xx raises
        PCSRedirectError with its Location.
        """
        session = await self._ensure_session()
        kwargs = {
            'headers': headers,
            'proxy': self._proxy(),
            'allow_redirects': self._config.follow_redirects,
            'max_redirects': self._config.max_redirects,
        }
        client_timeout = self._timeout(timeout)
        if client_timeout is not None:
            kwargs['timeout'] = client_timeout

        self._logger.debug(f"GET (stream) {request.redacted_url}")
        try:
            async with session.get(request.url, **kwargs) as response:
                if not 200 <= response.status <= 299:
                    body = await response.read()
                    raise ResponseHandler.parse_error(
                        RawResponse(
                            status=response.status,
                            body=body,
                            headers=dict(response.headers),
                            url=str(response.url)
                        ),
                        request,
                        path
                    )
                if response.history:
                    self._logger.debug(
                        f"{request.operation} redirected {len(response.history)} time(s)"
                    )
                yield response
        except asyncio.TimeoutError as e:
            raise PCSTransportError(
                "Download timed out", cause=e, operation=request.operation, path=path
            ) from e
        except aiohttp.ClientError as e:
            raise PCSTransportError(
                f"Network error: {e}", cause=e, operation=request.operation, path=path
            ) from e
