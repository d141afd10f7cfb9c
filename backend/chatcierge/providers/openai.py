import logging
from typing import List, Optional

import httpx

from chatcierge.config import settings
from chatcierge.providers.base import BaseProvider
from chatcierge.utils.exceptions import ProviderError
from chatcierge.utils.normalize import embedding_input

logger = logging.getLogger(__name__)

Embedding = List[float]


class OpenAIProvider(BaseProvider):
    """OpenAI embeddings + legacy (prompt based) streaming completions."""

    name = "OpenAI"

    def __init__(
        self,
        api_key: Optional[str],
        organization: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.organization = organization
        super().__init__(api_key, base_url, transport=transport)

    def _headers(self) -> dict:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    async def ping(self) -> bool:
        try:
            response = await self._client.get("/models")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"OpenAI ping error: {e}")
        return False

    async def get_embedding(self, text: str) -> Embedding | ProviderError:
        """Embed one piece of free text."""
        payload = {"input": embedding_input(text), "model": settings.embedding_model}
        try:
            response = await self._client.post("/embeddings", json=payload)
            response.raise_for_status()
            return response.json()["data"][0]["embedding"]
        except Exception as e:
            return self._error(e, "getEmbedding")

    def _completions_payload(self, prompts: List[str]) -> dict:
        return {
            "frequency_penalty": settings.completion_frequency_penalty,
            "max_tokens": settings.completion_max_tokens,
            "model": settings.completion_model,
            "presence_penalty": settings.completion_presence_penalty,
            "prompt": prompts,
            "stream": True,
            "temperature": settings.completion_temperature,
        }

    async def start_completions(self, prompts: List[str]) -> httpx.Response | ProviderError:
        """
        Start one streaming completion request covering every prompt.

        Each prompt is a slot; the SSE events of the returned response carry
        ``choices[0].index`` pointing back into ``prompts``. The caller owns
        the response and must close it.
        """
        request = self._client.build_request(
            "POST", "/completions", json=self._completions_payload(prompts)
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            return self._error(e, "getCompletions")

        if response.status_code != 200:
            body = await response.aread()
            await response.aclose()
            return self._error(
                f"HTTP {response.status_code}: {body.decode(errors='replace')[:500]}",
                "getCompletions",
            )
        return response
