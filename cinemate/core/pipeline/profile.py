"""
Build a user's taste profile from stored ratings.
"""

from typing import Iterable

from sqlalchemy.orm import Session

from cinemate.core.pipeline.models import RatedTitle, TasteProfile
from cinemate.database import crud

LOVED_MIN_SCORE = 4.5
ENJOYED_MIN_SCORE = 3.5
DISLIKED_MAX_SCORE = 2.0

MAX_LOVED = 20
MAX_ENJOYED = 20
MAX_DISLIKED = 10


def build_taste_profile(ratings: Iterable[RatedTitle]) -> TasteProfile:
    """
    Split ratings (most recent first) into loved/enjoyed/disliked buckets.

    Middling scores between the disliked and enjoyed thresholds say little
    about taste and are left out.
    """
    profile = TasteProfile()
    for rated in ratings:
        if rated.score >= LOVED_MIN_SCORE:
            if len(profile.loved) < MAX_LOVED:
                profile.loved.append(rated)
        elif rated.score >= ENJOYED_MIN_SCORE:
            if len(profile.enjoyed) < MAX_ENJOYED:
                profile.enjoyed.append(rated)
        elif rated.score <= DISLIKED_MAX_SCORE:
            if len(profile.disliked) < MAX_DISLIKED:
                profile.disliked.append(rated)
    return profile


def load_taste_profile(session: Session, user_id: int, limit: int = 100) -> TasteProfile:
    """Read the user's latest ratings and build their taste profile."""
    ratings = crud.get_user_ratings(session, user_id, limit=limit)
    return build_taste_profile(
        RatedTitle(title=r.movie.title, year=r.movie.release_year, score=r.rating)
        for r in ratings
    )
