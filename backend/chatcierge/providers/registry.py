import asyncio
import logging
from typing import List, Optional

from chatcierge.config import settings
from chatcierge.providers.base import BaseProvider
from chatcierge.providers.openai import OpenAIProvider
from chatcierge.providers.supabase import SupabaseProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Holds the shared provider clients for the process"""

    # Maximum time to wait for active streams during cleanup (seconds)
    CLEANUP_TIMEOUT = 10.0

    def __init__(
        self,
        openai: Optional[OpenAIProvider] = None,
        supabase: Optional[SupabaseProvider] = None,
    ):
        self._openai = openai
        self._supabase = supabase
        self._active_streams: int = 0

    @property
    def active_streams(self) -> int:
        return self._active_streams

    def stream_started(self) -> None:
        """Call when a recommendations stream starts."""
        self._active_streams += 1

    def stream_ended(self) -> None:
        """Call when a recommendations stream ends."""
        self._active_streams = max(0, self._active_streams - 1)

    async def initialize(self):
        """Create provider clients from settings (keeps any injected ones)."""
        if self._openai is None:
            self._openai = OpenAIProvider(
                api_key=settings.openai_api_key,
                organization=settings.openai_organization,
                base_url=settings.openai_base_url,
            )
        if self._supabase is None:
            self._supabase = SupabaseProvider(settings.supabase_url, settings.supabase_key)

        for provider in self.providers:
            if not provider.is_configured():
                logger.warning(f"Provider '{provider.name}' is not configured")

    @property
    def openai(self) -> OpenAIProvider:
        if self._openai is None:
            raise RuntimeError("Provider registry is not initialized")
        return self._openai

    @property
    def supabase(self) -> SupabaseProvider:
        if self._supabase is None:
            raise RuntimeError("Provider registry is not initialized")
        return self._supabase

    @property
    def providers(self) -> List[BaseProvider]:
        return [p for p in (self._openai, self._supabase) if p is not None]

    async def cleanup(self):
        """Cleanup all providers, waiting for active streams to complete."""
        wait_time = 0.0
        while self._active_streams > 0 and wait_time < self.CLEANUP_TIMEOUT:
            logger.debug(f"Waiting for {self._active_streams} active streams to complete...")
            await asyncio.sleep(0.1)
            wait_time += 0.1

        if self._active_streams > 0:
            logger.warning(
                f"Cleanup timeout: {self._active_streams} streams still active after "
                f"{self.CLEANUP_TIMEOUT}s. Proceeding with cleanup."
            )

        for provider in self.providers:
            try:
                await provider.cleanup()
            except Exception as e:
                logger.warning(f"Error cleaning up provider {provider.name}: {e}")
        self._openai = None
        self._supabase = None


# Singleton instance
provider_registry = ProviderRegistry()


def get_registry() -> ProviderRegistry:
    """FastAPI dependency returning the process registry."""
    return provider_registry
