"""
Tests for the TMDB client using httpx.MockTransport.
"""

import asyncio

import httpx
import pytest

from cinemate.clients.tmdb import TMDBClient, TMDBError
from cinemate.core.rate_limiter import RateLimiter


def make_client(handler, api_key="secret"):
    limiter = RateLimiter(max_requests=40, window_seconds=1.0, name="tmdb")
    return TMDBClient(
        api_key=api_key,
        limiter=limiter,
        base_url="https://tmdb.test/3",
        transport=httpx.MockTransport(handler),
    )


def search(client, title, year=None):
    async def main():
        try:
            return await client.search_movie(title, year)
        finally:
            await client.close()
    return asyncio.run(main())


class TestTMDBClient:
    """search_movie over a mocked transport."""

    def test_search_returns_first_result(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"results": [{"id": 666277, "title": "Past Lives"}, {"id": 1}]})

        client = make_client(handler)
        result = search(client, "Past Lives", 2023)

        assert result["id"] == 666277
        assert seen["path"] == "/3/search/movie"
        assert seen["params"]["query"] == "Past Lives"
        assert seen["params"]["year"] == "2023"
        assert seen["params"]["api_key"] == "secret"
        assert client.limiter.request_count == 1

    def test_no_results(self):
        client = make_client(lambda request: httpx.Response(200, json={"results": []}))
        assert search(client, "Nonexistent Film") is None

    def test_error_status(self):
        client = make_client(lambda request: httpx.Response(401, json={"status_message": "Invalid API key"}))
        with pytest.raises(TMDBError, match="401"):
            search(client, "Dune")

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(TMDBError):
            search(client, "Dune")

    def test_is_configured(self):
        assert make_client(lambda r: httpx.Response(200)).is_configured
        assert not make_client(lambda r: httpx.Response(200), api_key="  ").is_configured

    def test_non_json_body(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(TMDBError, match="non-JSON"):
            search(client, "Dune")

    def test_non_object_body(self):
        client = make_client(lambda request: httpx.Response(200, json=["Dune"]))
        with pytest.raises(TMDBError):
            search(client, "Dune")
