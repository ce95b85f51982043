"""
Async TMDB client used to resolve recommended titles to TMDB ids.

Every request goes through the process-wide TMDB rate limiter.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cinemate.core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class TMDBError(Exception):
    """TMDB returned an error status or could not be reached."""


class TMDBClient:
    """
    Minimal adapter for the TMDB v3 API (key as query param).
    """

    def __init__(
        self,
        api_key: Optional[str],
        limiter: RateLimiter,
        base_url: str = "https://api.themoviedb.org/3",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.limiter = limiter
        self.base = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def _get(self, path: str, params: Dict[str, Any], label: str) -> Dict[str, Any]:
        client = self._get_client()
        query = dict(params)
        query["api_key"] = self.api_key
        url = f"{self.base}{path}"

        try:
            r: httpx.Response = await self.limiter.execute(
                lambda: client.get(url, params=query), label
            )
        except httpx.HTTPError as e:
            raise TMDBError(f"{path} request failed: {e}") from e
        if r.status_code >= 400:
            raise TMDBError(f"{path} {r.status_code} :: {r.text[:200]}")
        try:
            payload = r.json()
        except ValueError as e:
            raise TMDBError(f"{path} returned a non-JSON body :: {r.text[:200]}") from e
        if not isinstance(payload, dict):
            raise TMDBError(f"{path} returned {type(payload).__name__}, expected an object")
        return payload

    async def search_movie(self, title: str, year: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Search TMDB for a title, optionally narrowed to a release year.

        Returns:
            The most relevant result, or None when nothing matched
        """
        params: Dict[str, Any] = {"query": title, "include_adult": "false", "page": 1}
        if year:
            params["year"] = year
        payload = await self._get("/search/movie", params, label=f"search:{title}")
        results = payload.get("results") or []
        if not results:
            logger.info("No TMDB results for %s (%s)", title, year)
            return None
        return results[0]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
