"""
HTTP client for the Context7-compatible documentation service.

The service is an external collaborator: it owns the library index and the
rendered documentation. This module only speaks its two endpoints:

- GET {base}/v1/search?query=...   -> JSON {"results": [...]}
- GET {base}/v1/{library_id}?...   -> plain-text documentation
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx

from libdocs_mcp.config import DEFAULT_API_URL
from libdocs_mcp.errors import RemoteError
from libdocs_mcp.validation import DocsRequest

logger = logging.getLogger(__name__)

SOURCE_HEADER = {"X-Context7-Source": "mcp-server"}

# Bodies the service returns instead of a 404 for unknown/unfinished libraries
EMPTY_DOC_MARKERS = frozenset({"No content available", "No context data available"})


@dataclass
class LibrarySearchResult:
    """Single library match."""

    id: str
    name: str
    description: str = ""
    snippet_count: int | None = None
    star_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LibrarySearchResult:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("title") or data.get("name") or ""),
            description=str(data.get("description") or ""),
            snippet_count=data.get("totalSnippets", data.get("snippetCount")),
            star_count=data.get("stars", data.get("starCount")),
        )


@dataclass
class SearchResponse:
    """Search payload. results is None when the service sent no result list."""

    results: list[LibrarySearchResult] | None

    @classmethod
    def from_dict(cls, data: Any) -> SearchResponse:
        raw = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return cls(results=None)
        return cls(
            results=[LibrarySearchResult.from_dict(r) for r in raw if isinstance(r, dict)]
        )


class RemoteDocsClient:
    """Async client for library search and documentation fetch.

    One instance is shared by all concurrent tool calls; httpx pools the
    underlying connections. No retries and no request timeout are applied.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=SOURCE_HEADER, timeout=None)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def search(self, query: str) -> SearchResponse | None:
        """
        Search the library index.

        Returns:
            SearchResponse, or None when the service answered with an error status
            or an unreadable body

        Raises:
            RemoteError: If the service could not be reached
        """
        url = f"{self.base_url}/v1/search"
        try:
            response = await self._http().get(url, params={"query": query}, headers=SOURCE_HEADER)
        except httpx.HTTPError as e:
            raise RemoteError(f"Failed to search libraries: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"Library search failed with status {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Library search returned invalid JSON: {e}")
            return None
        return SearchResponse.from_dict(payload)

    async def fetch(self, library_id: str, request: DocsRequest) -> str | None:
        """
        Fetch documentation text for a library.

        Returns:
            Documentation text, or None when the service has nothing for this id

        Raises:
            RemoteError: If the service could not be reached
        """
        library_id = library_id.lstrip("/")
        params: dict[str, Any] = {"tokens": request.tokens, "type": "txt"}
        if request.topic:
            params["topic"] = request.topic
        if request.folders:
            params["folders"] = request.folders
        if request.lang:
            params["lang"] = request.lang
        if request.version:
            params["version"] = request.version

        url = f"{self.base_url}/v1/{library_id}"
        try:
            response = await self._http().get(url, params=params, headers=SOURCE_HEADER)
        except httpx.HTTPError as e:
            raise RemoteError(f"Failed to fetch documentation: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"Documentation fetch for {library_id} failed with status {response.status_code}"
            )
            return None

        text = response.text
        if not text or text.strip() in EMPTY_DOC_MARKERS:
            return None
        return text
