"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..config import RetryConfig
from ..errors import PCSAPIError
from ...exceptions import PCSTransportError, PCSShortReadError


class RetryStrategy(ABC):
    """Abstract retry strategy."""
    
    @abstractmethod
    def should_retry(self, error: BaseException, retry_count: int, max_retries: int) -> bool:
        """Determines if an operation should be retried."""
        pass
    
    @abstractmethod
    async def wait_async(self, retry_count: int):
        """Waits before retry (async)."""
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """
    Exponential backoff retry strategy.
    
    Retries transport failures, 5xx responses and short local reads.
    Client errors (4xx), decode errors and validation errors are final.
    """
    
    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()
    
    def should_retry(self, error: BaseException, retry_count: int, max_retries: int) -> bool:
        if retry_count >= max_retries:
            return False
        if isinstance(error, (PCSTransportError, PCSShortReadError)):
            return True
        if isinstance(error, PCSAPIError):
            return error.is_server_error
        return False
    
    async def wait_async(self, retry_count: int):
        """Waits with exponential backoff (async)."""
        await asyncio.sleep(self._config.calculate_delay(retry_count))
