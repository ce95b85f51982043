"""
Shared fixtures: in-memory database, fake AI clients and a fake clock.
"""

import asyncio
import json
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinemate.clients.chat import ChatError, ChatResult
from cinemate.database import crud
from cinemate.database.models import Base


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create a new database session for testing."""
    session = session_factory()
    yield session
    session.close()


class FakeChatClient:
    """
    Stands in for ChatClient. Replies are served in order; the last one
    repeats. A reply may be an exception instance, which is raised instead.
    """

    def __init__(self, replies=None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.delay = delay
        self.calls: List[dict] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def complete(self, messages, json_mode: bool = False) -> ChatResult:
        self.calls.append({"messages": list(messages), "json_mode": json_mode})
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.replies:
            raise ChatError("no scripted reply")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return ChatResult(content=reply, model="fake")

    async def close(self) -> None:
        pass


class FakeClock:
    """Monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


SEARCH_REPLY = """Here are some picks:
1. **Past Lives** (2023) - Drama, Korean-American romance
2. **Anatomy of a Fall** (2023) - French courtroom drama
3. **Perfect Days** (2023) - Japanese slice of life
"""


def ranking_reply(titles: Optional[list] = None) -> str:
    """JSON reply of the generation model for (title, year) pairs."""
    titles = titles or [("Past Lives", 2023), ("Anatomy of a Fall", 2023), ("Perfect Days", 2023)]
    return json.dumps({
        "recommendations": [
            {
                "title": title,
                "year": year,
                "reason": f"Because you liked similar films ({title})",
                "matchPercentage": 90 - i,
                "genres": ["Drama"],
            }
            for i, (title, year) in enumerate(titles)
        ]
    })


def make_user(session, email: str = "viewer@example.com", ratings: int = 0, languages=None):
    """Create a user with `ratings` distinct rated titles."""
    user = crud.create_user(session, email=email, password_hash="x", name="Viewer", languages=languages)
    for i in range(ratings):
        crud.upsert_rating(
            session,
            user_id=user.user_id,
            movie_id=1000 + i,
            rating=5.0 - (i % 5),
            title=f"Rated Film {i}",
            release_year=2000 + i,
        )
    return user


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def api(session_factory):
    """
    TestClient wired to the in-memory database and fake AI clients.

    Returns a namespace with client, search, generation, registry and pipeline.
    """
    from types import SimpleNamespace

    from fastapi.testclient import TestClient

    from cinemate.api.dependencies import get_db, get_pipeline, get_registry
    from cinemate.api.main import app
    from cinemate.core.pipeline import (
        BulkRecommendationPipeline,
        CandidateSourcer,
        InFlightRegistry,
        RecommendationStore,
        SchemaEnforcer,
    )

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    search = FakeChatClient([SEARCH_REPLY])
    generation = FakeChatClient([ranking_reply()])
    registry = InFlightRegistry()
    pipeline = BulkRecommendationPipeline(
        sourcer=CandidateSourcer(search, timeout=5.0),
        enforcer=SchemaEnforcer(generation, timeout=5.0),
        store=RecommendationStore(),
        registry=registry,
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_registry] = lambda: registry
    try:
        yield SimpleNamespace(
            client=TestClient(app),
            search=search,
            generation=generation,
            registry=registry,
            pipeline=pipeline,
            app=app,
        )
    finally:
        app.dependency_overrides.clear()


def signup(client, email: str = "viewer@example.com", password: str = "secret123", **extra) -> dict:
    """Create an account through the API; returns auth headers plus the user id."""
    r = client.post("/api/auth/signup", json={"email": email, "password": password, "name": "Viewer", **extra})
    assert r.status_code == 201, r.text
    data = r.json()
    return {
        "headers": {"Authorization": f"Bearer {data['accessToken']}"},
        "user_id": data["user"]["user_id"],
    }


def rate(client, headers: dict, n: int, start_id: int = 1000) -> None:
    for i in range(n):
        r = client.post(
            "/api/ratings",
            json={"movieId": start_id + i, "title": f"Rated Film {i}", "releaseYear": 2000 + i, "rating": 4.5},
            headers=headers,
        )
        assert r.status_code == 200, r.text
