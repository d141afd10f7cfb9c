"""
Supabase provider: hosted Postgres reached through its PostgREST API.

Only the two calls the app needs are exposed: RPC execution (similarity
search) and an ``in`` filtered select (hotel lookup by uuid).
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from chatcierge.providers.base import BaseProvider
from chatcierge.utils.exceptions import ProviderError

logger = logging.getLogger(__name__)


def _in_filter(values: Sequence[str]) -> str:
    """PostgREST ``in`` filter; values are double quoted so commas are safe."""
    quoted = ",".join('"' + v.replace('"', '\\"') + '"' for v in values)
    return f"in.({quoted})"


class SupabaseProvider(BaseProvider):
    name = "Supabase"

    def __init__(
        self,
        url: Optional[str],
        key: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        super().__init__(key, f"{(url or 'http://localhost').rstrip('/')}/rest/v1", transport=transport)

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def ping(self) -> bool:
        try:
            response = await self._client.get("/searchables", params={"select": "*", "limit": 1})
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Supabase ping error: {e}")
        return False

    async def execute_rpc(self, rpc: str, params: Dict[str, Any]) -> List[dict] | ProviderError:
        """Call a Postgres function and return its rows."""
        call_site = f"executeRPC<{rpc}>"
        try:
            response = await self._client.post(f"/rpc/{rpc}", json=params)
        except httpx.HTTPError as e:
            return self._error(e, call_site)
        return self._check_rows(response, call_site)

    async def select_in(
        self,
        table: str,
        columns: Sequence[str],
        column: str,
        values: Sequence[str],
        query_name: str,
    ) -> List[dict] | ProviderError:
        """Select ``columns`` from ``table`` where ``column`` is one of ``values``.

        Row order is whatever the database returns.
        """
        call_site = f"executeQuery<{query_name}>"
        params = {"select": ",".join(columns), column: _in_filter(values)}
        try:
            response = await self._client.get(f"/{table}", params=params)
        except httpx.HTTPError as e:
            return self._error(e, call_site)
        return self._check_rows(response, call_site)

    def _check_rows(self, response: httpx.Response, call_site: str) -> List[dict] | ProviderError:
        if response.status_code != 200:
            try:
                error = response.json()
            except ValueError:
                error = response.text
            return self._error(error, call_site)

        try:
            rows = response.json()
        except ValueError as e:
            return self._error(e, call_site)
        if not isinstance(rows, list):
            return self._error(f"Expected a list of rows, got {type(rows).__name__}", call_site)
        return rows
