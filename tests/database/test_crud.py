"""
Unit tests for database CRUD operations.

Tests for User, Movie, Rating, Watchlist and Recommendation CRUD operations
using an in-memory SQLite database for fast, isolated testing.
"""

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from cinemate.database import crud
from cinemate.database.models import Recommendation


def _user(session, email="user@example.com", **kwargs):
    return crud.create_user(session, email=email, password_hash="hash", **kwargs)


class TestUserCRUD:
    """Tests for User CRUD operations."""

    def test_create_user(self, session):
        """Test creating a new user."""
        user = _user(session, email=" Someone@Example.COM ", name="Someone", languages=["Korean"])

        assert user.user_id is not None
        assert user.email == "someone@example.com"
        assert user.name == "Someone"
        assert crud.get_user_languages(user) == ["Korean"]

    def test_create_user_duplicate_email(self, session):
        """Test that a second account with the same email raises error."""
        _user(session)
        with pytest.raises(ValueError):
            _user(session, email="USER@example.com")

    def test_get_user_by_email(self, session):
        user = _user(session)
        assert crud.get_user_by_email(session, "User@Example.com").user_id == user.user_id
        assert crud.get_user_by_email(session, "nobody@example.com") is None

    def test_get_user_not_found(self, session):
        """Test that getting a non-existent user returns None."""
        assert crud.get_user(session, 999) is None

    def test_update_user_languages(self, session):
        user = _user(session)
        updated = crud.update_user_languages(session, user.user_id, ["Hindi", "Tamil"])
        assert crud.get_user_languages(updated) == ["Hindi", "Tamil"]

    def test_corrupt_languages_read_as_empty(self, session):
        user = _user(session)
        user.languages = "not json"
        assert crud.get_user_languages(user) == []

    def test_get_user_count(self, session):
        """Test getting total user count."""
        assert crud.get_user_count(session) == 0
        _user(session, email="a@example.com")
        _user(session, email="b@example.com")
        assert crud.get_user_count(session) == 2


class TestMovieCRUD:
    """Tests for Movie CRUD operations."""

    def test_upsert_creates_movie(self, session):
        movie = crud.upsert_movie(session, 1, "Dune", release_year=2021, genres=["Sci-Fi"])

        assert movie.movie_id == 1
        assert movie.release_year == 2021
        assert json.loads(movie.genres) == ["Sci-Fi"]
        assert crud.get_movie_count(session) == 1

    def test_upsert_keeps_existing_fields(self, session):
        crud.upsert_movie(session, 1, "Dune", release_year=2021, overview="Spice")
        movie = crud.upsert_movie(session, 1, "Dune", overview=None, runtime=155)

        assert movie.overview == "Spice"
        assert movie.runtime == 155
        assert crud.get_movie_count(session) == 1


class TestRatingCRUD:
    """Tests for Rating CRUD operations."""

    def test_upsert_rating_creates_movie(self, session):
        user = _user(session)
        rating = crud.upsert_rating(session, user.user_id, 10, 4.5, "Heat", 1995)

        assert rating.rating == 4.5
        assert crud.get_movie(session, 10).title == "Heat"

    def test_upsert_rating_updates(self, session):
        user = _user(session)
        crud.upsert_rating(session, user.user_id, 10, 4.5, "Heat", 1995)
        crud.upsert_rating(session, user.user_id, 10, 2.0, "Heat", 1995)

        assert crud.count_user_ratings(session, user.user_id) == 1
        assert crud.get_rating_by_user_movie(session, user.user_id, 10).rating == 2.0

    @pytest.mark.parametrize("value", [0.5, 5.5])
    def test_rating_out_of_range(self, session, value):
        user = _user(session)
        with pytest.raises(ValueError):
            crud.upsert_rating(session, user.user_id, 10, value, "Heat")

    def test_get_user_ratings_most_recent_first(self, session):
        user = _user(session)
        for i in range(4):
            crud.upsert_rating(session, user.user_id, 100 + i, 3.0, f"Film {i}")

        ratings = crud.get_user_ratings(session, user.user_id, limit=2)
        assert [r.movie_id for r in ratings] == [103, 102]

    def test_delete_rating(self, session):
        user = _user(session)
        crud.upsert_rating(session, user.user_id, 10, 4.0, "Heat")

        assert crud.delete_rating(session, user.user_id, 10) is True
        assert crud.delete_rating(session, user.user_id, 10) is False
        assert crud.get_rating_count(session) == 0


class TestWatchlistCRUD:
    """Tests for Watchlist CRUD operations."""

    def test_add_is_idempotent(self, session):
        user = _user(session)
        _, created = crud.add_to_watchlist(session, user.user_id, 7, "Alien", 1979)
        _, created_again = crud.add_to_watchlist(session, user.user_id, 7, "Alien", 1979)

        assert created is True
        assert created_again is False
        assert len(crud.get_watchlist(session, user.user_id)) == 1

    def test_watchlist_keys_normalized(self, session):
        user = _user(session)
        crud.add_to_watchlist(session, user.user_id, 7, "  The   Thing ", 1982)

        assert crud.get_watchlist_keys(session, user.user_id) == {("the thing", 1982)}

    def test_remove(self, session):
        user = _user(session)
        crud.add_to_watchlist(session, user.user_id, 7, "Alien", 1979)

        assert crud.remove_from_watchlist(session, user.user_id, 7) is True
        assert crud.remove_from_watchlist(session, user.user_id, 7) is False


class TestRecommendationCRUD:
    """Tests for Recommendation CRUD operations."""

    def _store_batch(self, session, user_id, titles):
        batch_id = str(uuid.uuid4())
        for position, (movie_id, title) in enumerate(titles, start=1):
            crud.store_recommendation(
                session, user_id, batch_id, position, movie_id, title,
                reason="fits", match_percentage=80, release_year=2020,
            )
        return batch_id

    def test_store_recommendation(self, session):
        user = _user(session)
        self._store_batch(session, user.user_id, [(1, "A"), (2, "B")])

        assert crud.get_movie_count(session) == 2
        status = crud.get_recommendation_status(session, user.user_id)
        assert status == {"total": 2, "unshown": 2, "shown": 0, "rated": 0, "available": 2}

    def test_invalid_match_percentage_rolled_back(self, session):
        user = _user(session)
        with pytest.raises(IntegrityError):
            crud.store_recommendation(
                session, user.user_id, "batch", 1, 1, "A", match_percentage=150
            )
        assert session.query(Recommendation).count() == 0
        assert crud.get_movie_count(session) == 0

    def test_next_latest_batch_first_and_marked_shown(self, session):
        user = _user(session)
        self._store_batch(session, user.user_id, [(1, "Old 1"), (2, "Old 2")])
        self._store_batch(session, user.user_id, [(3, "New 1"), (4, "New 2")])

        first = crud.get_next_recommendations(session, user.user_id, limit=3)
        assert [r.movie_id for r in first] == [3, 4, 1]

        rest = crud.get_next_recommendations(session, user.user_id, limit=3)
        assert [r.movie_id for r in rest] == [2]
        assert crud.get_next_recommendations(session, user.user_id) == []

    def test_mark_rated(self, session):
        user = _user(session)
        self._store_batch(session, user.user_id, [(1, "A"), (2, "B")])

        assert crud.mark_recommendation_rated(session, user.user_id, 1) == 1
        status = crud.get_recommendation_status(session, user.user_id)
        assert status["rated"] == 1
        assert status["available"] == 1

    def test_recent_keys_exclude_rated_and_old(self, session):
        user = _user(session)
        self._store_batch(session, user.user_id, [(1, "Kept"), (2, "Rated")])
        crud.mark_recommendation_rated(session, user.user_id, 2)

        since = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(hours=24)
        assert crud.get_recent_recommendation_keys(session, user.user_id, since) == {("kept", 2020)}

        future = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
        assert crud.get_recent_recommendation_keys(session, user.user_id, future) == set()
