"""
Per-user in-flight tracking and the read-only status report.
"""

import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

from sqlalchemy.orm import Session

from cinemate.core.errors import AlreadyInProgress
from cinemate.core.pipeline.gate import MIN_RATINGS
from cinemate.database import crud
from cinemate.database.models import User


class InFlightRegistry:
    """
    Marks users with a generation currently running in this process.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._started: Dict[int, float] = {}
        self._lock = threading.Lock()

    def claim(self, user_id: int) -> None:
        """
        Raises:
            AlreadyInProgress: If the user already has a run in flight
        """
        with self._lock:
            if user_id in self._started:
                raise AlreadyInProgress(
                    "A recommendation batch is already being generated for this user"
                )
            self._started[user_id] = self._clock()

    def release(self, user_id: int) -> None:
        with self._lock:
            self._started.pop(user_id, None)

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        self.claim(user_id)
        try:
            yield
        finally:
            self.release(user_id)

    def started_at(self, user_id: int) -> Optional[float]:
        with self._lock:
            return self._started.get(user_id)


def recommendation_status(
    session: Session,
    user: User,
    registry: Optional[InFlightRegistry] = None,
) -> Dict[str, Any]:
    """
    Report rating readiness and the user's recommendation queue.

    Reads only; calling it twice without intervening writes gives the same
    rating count and readiness.
    """
    rating_count = crud.count_user_ratings(session, user.user_id)
    ready = rating_count >= MIN_RATINGS

    queue = crud.get_recommendation_status(session, user.user_id)
    started = registry.started_at(user.user_id) if registry else None
    queue["inProgress"] = started is not None
    queue["startedAt"] = (
        datetime.fromtimestamp(started, tz=timezone.utc).isoformat() if started else None
    )

    return {
        "user": {"id": user.user_id, "email": user.email, "ratingCount": rating_count},
        "queue": queue,
        "ready": ready,
        "message": (
            "Ready to generate recommendations"
            if ready
            else f"Need {MIN_RATINGS - rating_count} more ratings"
        ),
    }
