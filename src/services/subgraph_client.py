"""GraphQL client for the analytics and farming subgraphs.

The client is a one-shot query executor: it POSTs `{query, variables}` and
returns the `data` member of the response. Pagination belongs to the caller
(see `src.pipelines.snapshot`).
"""

from __future__ import annotations

from typing import Any

import httpx


class SubgraphError(Exception):
    """Raised when a subgraph response carries a non-empty `errors` list."""

    def __init__(self, url: str, errors: list[dict[str, Any]]) -> None:
        self.url = url
        self.errors = errors
        parts = []
        for err in errors:
            if not isinstance(err, dict):
                parts.append(str(err))
                continue
            message = err.get("message") or "unknown error"
            path = err.get("path")
            parts.append(f"{message} (path: {path})" if path else message)
        super().__init__(f"graphql errors from {url}: " + "; ".join(parts))


class SubgraphClient:
    """Async client for a single subgraph endpoint."""

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a new client.

        Args:
            url: Subgraph endpoint URL.
            api_key: Sent as the `api-key` request header when set.
            timeout_seconds: Request timeout.
            transport: Optional httpx transport override (used for unit tests).
        """
        self.url = url
        self._api_key = api_key
        self._timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key
        return headers

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query and return its `data` payload.

        Raises:
            SubgraphError: If the response lists GraphQL errors.
            httpx.HTTPStatusError: If the endpoint returns a non-success status.
            httpx.RequestError: For network errors.
            ValueError: If the body is not JSON.
        """
        body = {"query": query, "variables": variables or {}}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=body, headers=self._headers())
            response.raise_for_status()
            payload = response.json() or {}

        errors = payload.get("errors") or []
        if errors:
            raise SubgraphError(self.url, errors)

        data = payload.get("data")
        return data if isinstance(data, dict) else {}
