import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from chatcierge.config import settings
from chatcierge.utils.exceptions import ProviderError, get_error_message

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for external HTTP collaborators"""

    name: str  # Provider identifier, used as the prefix of error sources

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=transport,
        )

    @property
    def timeout(self) -> httpx.Timeout:
        """Provider timeout; reads on a stream fail after stream_read_timeout."""
        return httpx.Timeout(
            float(settings.provider_timeout),
            read=float(settings.stream_read_timeout),
        )

    @abstractmethod
    def _headers(self) -> dict:
        """Default headers for every request"""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Cheap reachability check used by the health endpoint"""
        pass

    async def cleanup(self):
        """Cleanup HTTP client resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def is_configured(self) -> bool:
        """Check if provider has valid credentials"""
        return bool(self.api_key)

    def _error(self, error: object, call_site: str) -> ProviderError:
        """Log a failed call and convert it to the error envelope."""
        source = f"{self.name}:{call_site}"
        logger.error(f"{source} error: {get_error_message(error)}")
        return ProviderError(message=get_error_message(error), source=source)
