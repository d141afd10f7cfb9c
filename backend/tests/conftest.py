"""Shared test fixtures.

Providers talk to in-process fakes through httpx.MockTransport, and the app
is driven through httpx.ASGITransport, so no network is used.
"""

from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chatcierge.main import app
from chatcierge.providers.openai import OpenAIProvider
from chatcierge.providers.registry import ProviderRegistry, get_registry
from chatcierge.providers.supabase import SupabaseProvider

from helpers import DONE_EVENT, HOTEL_ROWS, completion_event, iterate


class FakeUpstream:
    """In-process stand-in for the OpenAI and Supabase HTTP APIs."""

    def __init__(self):
        self.completion_chunks: List[bytes] = [
            completion_event("\n", 0),
            completion_event("\n", 1),
            completion_event("Great", 0),
            completion_event("Nice", 1),
            DONE_EVENT,
        ]
        self.completion_status = 200
        self.completion_error: Optional[Exception] = None
        self.embedding: List[float] = [0.1, 0.2, 0.3]
        self.embedding_status = 200
        self.rpc_rows: List[dict] = [HOTEL_ROWS[1], HOTEL_ROWS[0]]
        self.rpc_status = 200
        self.table_status = 200
        self.requests: Dict[str, List[httpx.Request]] = {}

    def _record(self, name: str, request: httpx.Request) -> None:
        self.requests.setdefault(name, []).append(request)

    def openai_handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/models"):
            self._record("models", request)
            return httpx.Response(200, json={"data": []})
        if path.endswith("/embeddings"):
            self._record("embeddings", request)
            if self.embedding_status != 200:
                return httpx.Response(self.embedding_status, json={"error": {"message": "boom"}})
            return httpx.Response(200, json={"data": [{"embedding": self.embedding}]})
        if path.endswith("/completions"):
            self._record("completions", request)
            if self.completion_status != 200:
                return httpx.Response(self.completion_status, json={"error": {"message": "rate limited"}})
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=iterate(list(self.completion_chunks), error=self.completion_error),
            )
        return httpx.Response(404)

    def supabase_handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/rpc/get_hotels_for_question"):
            self._record("rpc", request)
            if self.rpc_status != 200:
                return httpx.Response(self.rpc_status, json={"message": "function failed"})
            return httpx.Response(200, json=self.rpc_rows)
        if path.endswith("/hotels"):
            self._record("hotels", request)
            if self.table_status != 200:
                return httpx.Response(self.table_status, json={"message": "permission denied"})
            wanted = request.url.params["uuid"]
            rows = [r for r in HOTEL_ROWS if f'"{r["uuid"]}"' in wanted]
            # Database order, deliberately not the requested order
            return httpx.Response(200, json=list(reversed(rows)))
        if path.endswith("/searchables"):
            self._record("searchables", request)
            return httpx.Response(200, json=[])
        return httpx.Response(404)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def registry(upstream: FakeUpstream) -> ProviderRegistry:
    return ProviderRegistry(
        openai=OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(upstream.openai_handler)),
        supabase=SupabaseProvider(
            "http://supabase.test", "anon-key", transport=httpx.MockTransport(upstream.supabase_handler)
        ),
    )


@pytest_asyncio.fixture
async def api_client(registry: ProviderRegistry):
    app.dependency_overrides[get_registry] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.pop(get_registry, None)
