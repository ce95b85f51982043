"""
API tests for the bulk recommendation endpoints and the recommendation queue.
"""

from cinemate.api.dependencies import get_pipeline
from cinemate.clients.chat import ChatError
from conftest import rate, signup


class TestBulkGeneration:
    """Tests for POST /api/recommendations/bulk."""

    def test_unauthenticated(self, api):
        r = api.client.post("/api/recommendations/bulk", json={"count": 3})
        assert r.status_code == 401
        assert r.json() == {"error": "Unauthorized"}
        assert api.search.calls == []

    def test_unauthenticated_with_unreadable_body(self, api):
        r = api.client.post(
            "/api/recommendations/bulk",
            content="not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 401
        assert r.json() == {"error": "Unauthorized"}

    def test_unauthenticated_with_mistyped_fields(self, api):
        r = api.client.post("/api/recommendations/bulk", json={"genres": 5, "languages": [1, 2]})
        assert r.status_code == 401

    def test_unreadable_body_means_no_filters(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)

        r = api.client.post(
            "/api/recommendations/bulk",
            content="{count: 3",
            headers={**account["headers"], "Content-Type": "application/json"},
        )

        assert r.status_code == 200, r.text
        assert "Find 10 movie recommendations" in api.search.calls[0]["messages"][-1]["content"]

    def test_non_object_body_means_no_filters(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)

        r = api.client.post("/api/recommendations/bulk", json=[1, 2, 3], headers=account["headers"])

        assert r.status_code == 200, r.text
        assert "Find 10 movie recommendations" in api.search.calls[0]["messages"][-1]["content"]

    def test_not_enough_ratings(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 2)

        r = api.client.post("/api/recommendations/bulk", json={"count": 3}, headers=account["headers"])

        assert r.status_code == 400
        data = r.json()
        assert data["error"] == "Not enough ratings"
        assert data["currentRatings"] == 2
        assert "message" in data
        assert api.search.calls == []
        assert api.generation.calls == []

    def test_success(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)

        r = api.client.post(
            "/api/recommendations/bulk",
            json={"count": 3, "genres": ["Drama"], "yearFrom": 2020, "minImdbRating": 7},
            headers=account["headers"],
        )

        assert r.status_code == 200, r.text
        data = r.json()
        assert data["batchId"]
        assert data["totalRequested"] == 3
        assert data["successfullyStored"] == 3
        assert data["skipped"] == 0
        assert data["failed"] == 0
        prompt = api.search.calls[0]["messages"][-1]["content"]
        assert "Preferred genres: Drama" in prompt
        assert "Minimum IMDb rating: 7/10" in prompt

    def test_body_optional(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)

        r = api.client.post("/api/recommendations/bulk", headers=account["headers"])

        assert r.status_code == 200, r.text
        prompt = api.search.calls[0]["messages"][-1]["content"]
        assert "Find 10 movie recommendations" in prompt

    def test_non_numeric_count_uses_default(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)

        r = api.client.post("/api/recommendations/bulk", json={"count": "lots"}, headers=account["headers"])

        assert r.status_code == 200
        assert "Find 10 movie recommendations" in api.search.calls[0]["messages"][-1]["content"]

    def test_upstream_failure(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)
        api.search.replies = [ChatError("503 Service Unavailable")]

        r = api.client.post("/api/recommendations/bulk", json={"count": 3}, headers=account["headers"])

        assert r.status_code == 500
        data = r.json()
        assert data["error"] == "Failed to generate recommendations"
        assert "503" in data["details"]

    def test_already_in_progress(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)
        api.registry.claim(account["user_id"])

        r = api.client.post("/api/recommendations/bulk", json={"count": 3}, headers=account["headers"])

        assert r.status_code == 409
        assert set(r.json()) == {"error", "message"}

    def test_unexpected_error(self, api):
        account = signup(api.client)

        class BrokenPipeline:
            async def run(self, session, user, raw_filters):
                raise RuntimeError("database is locked")

        api.app.dependency_overrides[get_pipeline] = lambda: BrokenPipeline()
        r = api.client.post("/api/recommendations/bulk", json={}, headers=account["headers"])

        assert r.status_code == 500
        assert r.json() == {"error": "Failed to generate recommendations", "details": "database is locked"}


class TestBulkStatus:
    """Tests for GET /api/recommendations/bulk."""

    def test_requires_token(self, api):
        assert api.client.get("/api/recommendations/bulk").status_code == 401

    def test_not_ready(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 1)

        first = api.client.get("/api/recommendations/bulk", headers=account["headers"]).json()
        second = api.client.get("/api/recommendations/bulk", headers=account["headers"]).json()

        assert first == second
        assert first["ready"] is False
        assert first["user"]["ratingCount"] == 1
        assert first["message"] == "Need 2 more ratings"

    def test_ready_after_generation(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)
        api.client.post("/api/recommendations/bulk", json={"count": 3}, headers=account["headers"])

        data = api.client.get("/api/recommendations/bulk", headers=account["headers"]).json()

        assert data["ready"] is True
        assert data["queue"]["total"] == 3
        assert data["queue"]["available"] == 3
        assert data["queue"]["inProgress"] is False


class TestRecommendationQueue:
    """Tests for GET /api/recommendations/next and POST /api/recommendations/mark-rated."""

    def _generate(self, api):
        account = signup(api.client)
        rate(api.client, account["headers"], 3)
        r = api.client.post("/api/recommendations/bulk", json={"count": 3}, headers=account["headers"])
        assert r.status_code == 200
        return account

    def test_next_serves_each_once(self, api):
        account = self._generate(api)

        first = api.client.get("/api/recommendations/next?limit=2", headers=account["headers"]).json()
        second = api.client.get("/api/recommendations/next?limit=2", headers=account["headers"]).json()

        assert [r["title"] for r in first["recommendations"]] == ["Past Lives", "Anatomy of a Fall"]
        assert [r["title"] for r in second["recommendations"]] == ["Perfect Days"]
        assert first["recommendations"][0]["genres"] == ["Drama"]
        assert first["recommendations"][0]["position"] == 1

    def test_mark_rated(self, api):
        account = self._generate(api)
        recs = api.client.get("/api/recommendations/next", headers=account["headers"]).json()
        movie_id = recs["recommendations"][0]["movie_id"]

        r = api.client.post(
            "/api/recommendations/mark-rated",
            json={"movieId": movie_id},
            headers=account["headers"],
        )

        assert r.json()["updated"] == 1
        queue = api.client.get("/api/recommendations/bulk", headers=account["headers"]).json()["queue"]
        assert queue["rated"] == 1

    def test_rating_a_recommendation_marks_it_rated(self, api):
        account = self._generate(api)
        recs = api.client.get("/api/recommendations/next", headers=account["headers"]).json()
        first = recs["recommendations"][0]

        api.client.post(
            "/api/ratings",
            json={"movieId": first["movie_id"], "title": first["title"], "rating": 5},
            headers=account["headers"],
        )

        queue = api.client.get("/api/recommendations/bulk", headers=account["headers"]).json()["queue"]
        assert queue["rated"] == 1
