from chatcierge.providers.base import BaseProvider
from chatcierge.providers.registry import get_registry, provider_registry

__all__ = ["BaseProvider", "get_registry", "provider_registry"]
