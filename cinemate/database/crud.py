"""
CRUD operations for User, Movie, Rating, WatchlistItem and Recommendation.

This module provides Create, Read, Update, Delete operations for all database models.
"""

import json
from datetime import datetime
from typing import List, Optional, Dict, Any, Set, Tuple
from sqlalchemy import func, and_
from sqlalchemy.orm import Session

from cinemate.database.models import User, Movie, Rating, WatchlistItem, Recommendation


TitleKey = Tuple[str, Optional[int]]


def title_key(title: str, release_year: Optional[int]) -> TitleKey:
    """
    Normalized (title, year) pair used to compare titles across tables.

    Titles compare case-insensitively with runs of whitespace collapsed.
    """
    return " ".join((title or "").casefold().split()), release_year


# ==================== USER CRUD OPERATIONS ====================

def create_user(
    session: Session,
    email: str,
    password_hash: str,
    name: Optional[str] = None,
    languages: Optional[List[str]] = None,
) -> User:
    """
    Create a new user.

    Args:
        session: Database session
        email: Login email
        password_hash: bcrypt hash of the password
        name: Display name (optional)
        languages: Preferred languages/cinemas (optional)

    Returns:
        Created User object

    Raises:
        ValueError: If a user with this email already exists
    """
    email = email.strip().lower()
    if get_user_by_email(session, email) is not None:
        raise ValueError("User with this email already exists")

    user = User(
        email=email,
        password_hash=password_hash,
        name=name,
        languages=json.dumps(languages or []),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def get_user(session: Session, user_id: int) -> Optional[User]:
    """
    Get a user by ID.

    Returns:
        User object or None if not found
    """
    return session.query(User).filter(User.user_id == user_id).first()


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    """
    Get a user by email (case-insensitive).

    Returns:
        User object or None if not found
    """
    return session.query(User).filter(User.email == email.strip().lower()).first()


def get_user_count(session: Session) -> int:
    """Get total count of users."""
    return session.query(func.count(User.user_id)).scalar()


def get_user_languages(user: User) -> List[str]:
    """Decode the user's stored language preferences."""
    try:
        languages = json.loads(user.languages or "[]")
    except (TypeError, ValueError):
        return []
    return [lang for lang in languages if isinstance(lang, str)]


def update_user_languages(session: Session, user_id: int, languages: List[str]) -> Optional[User]:
    """
    Replace a user's language preferences.

    Returns:
        Updated User object or None if not found
    """
    user = get_user(session, user_id)
    if user:
        user.languages = json.dumps(languages)
        session.commit()
        session.refresh(user)
    return user


# ==================== MOVIE CRUD OPERATIONS ====================

def get_movie(session: Session, movie_id: int) -> Optional[Movie]:
    """
    Get a movie by ID.

    Returns:
        Movie object or None if not found
    """
    return session.query(Movie).filter(Movie.movie_id == movie_id).first()


def get_movie_count(session: Session) -> int:
    """Get total count of movies."""
    return session.query(func.count(Movie.movie_id)).scalar()


def upsert_movie(
    session: Session,
    movie_id: int,
    title: str,
    commit: bool = True,
    **fields: Any
) -> Movie:
    """
    Create a movie or refresh the fields of an existing one.

    Args:
        session: Database session
        movie_id: Movie ID
        title: Movie title
        commit: Commit the session when done (default: True)
        **fields: Other Movie columns; None values leave existing data untouched,
            list values for genres are stored as JSON

    Returns:
        The stored Movie object
    """
    if isinstance(fields.get("genres"), (list, tuple)):
        fields["genres"] = json.dumps(list(fields["genres"]))

    movie = session.get(Movie, movie_id)
    if movie is None:
        movie = Movie(movie_id=movie_id, title=title)
        session.add(movie)
    else:
        movie.title = title
    for key, value in fields.items():
        if value is not None and hasattr(movie, key):
            setattr(movie, key, value)

    if commit:
        session.commit()
        session.refresh(movie)
    else:
        session.flush()
    return movie


# ==================== RATING CRUD OPERATIONS ====================

def upsert_rating(
    session: Session,
    user_id: int,
    movie_id: int,
    rating: float,
    title: str,
    release_year: Optional[int] = None,
) -> Rating:
    """
    Add or update the user's rating for a title.

    The title is recorded in the movies table if it is not there yet.

    Args:
        session: Database session
        user_id: User ID
        movie_id: Movie ID
        rating: Rating value (1.0 to 5.0)
        title: Movie title
        release_year: Release year (optional)

    Returns:
        Created or updated Rating object

    Raises:
        ValueError: If rating is not between 1 and 5
    """
    if not (1.0 <= rating <= 5.0):
        raise ValueError("Rating must be between 1.0 and 5.0")

    if get_movie(session, movie_id) is None:
        upsert_movie(session, movie_id, title, commit=False, release_year=release_year)

    rating_obj = get_rating_by_user_movie(session, user_id, movie_id)
    if rating_obj is None:
        rating_obj = Rating(user_id=user_id, movie_id=movie_id, rating=rating)
        session.add(rating_obj)
    else:
        rating_obj.rating = rating
    session.commit()
    session.refresh(rating_obj)
    return rating_obj


def get_rating_by_user_movie(
    session: Session,
    user_id: int,
    movie_id: int
) -> Optional[Rating]:
    """
    Get a rating by user and movie.

    Returns:
        Rating object or None if not found
    """
    return session.query(Rating).filter(
        and_(Rating.user_id == user_id, Rating.movie_id == movie_id)
    ).first()


def get_user_ratings(
    session: Session,
    user_id: int,
    limit: Optional[int] = None
) -> List[Rating]:
    """
    Get a user's ratings, most recent first.

    Args:
        session: Database session
        user_id: User ID
        limit: Maximum number of ratings to return (all when None)

    Returns:
        List of Rating objects
    """
    query = session.query(Rating).filter(Rating.user_id == user_id).order_by(
        Rating.created_at.desc(), Rating.rating_id.desc()
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_user_ratings(session: Session, user_id: int) -> int:
    """Get the number of ratings stored for a user."""
    return session.query(func.count(Rating.rating_id)).filter(
        Rating.user_id == user_id
    ).scalar()


def delete_rating(session: Session, user_id: int, movie_id: int) -> bool:
    """
    Delete a user's rating for a title.

    Returns:
        True if rating was deleted, False if not found
    """
    rating = get_rating_by_user_movie(session, user_id, movie_id)
    if rating:
        session.delete(rating)
        session.commit()
        return True
    return False


def get_rating_count(session: Session) -> int:
    """Get total count of ratings."""
    return session.query(func.count(Rating.rating_id)).scalar()


# ==================== WATCHLIST CRUD OPERATIONS ====================

def add_to_watchlist(
    session: Session,
    user_id: int,
    movie_id: int,
    title: str,
    release_year: Optional[int] = None,
) -> Tuple[WatchlistItem, bool]:
    """
    Add a title to the user's watchlist.

    Returns:
        (item, created) where created is False when the title was already listed
    """
    existing = session.query(WatchlistItem).filter(
        and_(WatchlistItem.user_id == user_id, WatchlistItem.movie_id == movie_id)
    ).first()
    if existing:
        return existing, False

    if get_movie(session, movie_id) is None:
        upsert_movie(session, movie_id, title, commit=False, release_year=release_year)

    item = WatchlistItem(user_id=user_id, movie_id=movie_id)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item, True


def get_watchlist(session: Session, user_id: int) -> List[WatchlistItem]:
    """Get the user's watchlist, most recently added first."""
    return session.query(WatchlistItem).filter(
        WatchlistItem.user_id == user_id
    ).order_by(WatchlistItem.added_at.desc(), WatchlistItem.item_id.desc()).all()


def remove_from_watchlist(session: Session, user_id: int, movie_id: int) -> bool:
    """
    Remove a title from the user's watchlist.

    Returns:
        True if the item was removed, False if not found
    """
    item = session.query(WatchlistItem).filter(
        and_(WatchlistItem.user_id == user_id, WatchlistItem.movie_id == movie_id)
    ).first()
    if item:
        session.delete(item)
        session.commit()
        return True
    return False


def get_watchlist_keys(session: Session, user_id: int) -> Set[TitleKey]:
    """Normalized (title, year) keys of everything on the user's watchlist."""
    rows = session.query(Movie.title, Movie.release_year).join(
        WatchlistItem, WatchlistItem.movie_id == Movie.movie_id
    ).filter(WatchlistItem.user_id == user_id).all()
    return {title_key(title, year) for title, year in rows}


# ==================== RECOMMENDATION CRUD OPERATIONS ====================

def store_recommendation(
    session: Session,
    user_id: int,
    batch_id: str,
    position: int,
    movie_id: int,
    title: str,
    reason: Optional[str] = None,
    match_percentage: Optional[int] = None,
    **movie_fields: Any
) -> Recommendation:
    """
    Upsert the recommended movie and insert the recommendation row.

    Both writes are committed together; on failure the session is rolled
    back and the exception re-raised.

    Returns:
        Created Recommendation object
    """
    try:
        upsert_movie(session, movie_id, title, commit=False, **movie_fields)
        recommendation = Recommendation(
            user_id=user_id,
            movie_id=movie_id,
            batch_id=batch_id,
            position=position,
            reason=reason,
            match_percentage=match_percentage,
            shown=False,
            rated=False,
        )
        session.add(recommendation)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(recommendation)
    return recommendation


def get_recent_recommendation_keys(
    session: Session,
    user_id: int,
    since: datetime
) -> Set[TitleKey]:
    """
    Normalized (title, year) keys of the user's unrated recommendations
    created at or after `since`.
    """
    rows = session.query(Movie.title, Movie.release_year).join(
        Recommendation, Recommendation.movie_id == Movie.movie_id
    ).filter(
        Recommendation.user_id == user_id,
        Recommendation.rated.is_(False),
        Recommendation.created_at >= since,
    ).all()
    return {title_key(title, year) for title, year in rows}


def get_next_recommendations(
    session: Session,
    user_id: int,
    limit: int = 10
) -> List[Recommendation]:
    """
    Get the next unshown, unrated recommendations and mark them shown.

    Rows come from the latest batch first, then by rank.
    """
    batch_order = session.query(
        Recommendation.batch_id,
        func.max(Recommendation.recommendation_id).label('latest_id')
    ).filter(Recommendation.user_id == user_id).group_by(Recommendation.batch_id).subquery()

    recommendations = session.query(Recommendation).join(
        batch_order, batch_order.c.batch_id == Recommendation.batch_id
    ).filter(
        Recommendation.user_id == user_id,
        Recommendation.shown.is_(False),
        Recommendation.rated.is_(False),
    ).order_by(
        batch_order.c.latest_id.desc(),
        Recommendation.position.asc(),
    ).limit(limit).all()

    if recommendations:
        for recommendation in recommendations:
            recommendation.shown = True
        session.commit()
    return recommendations


def mark_recommendation_rated(session: Session, user_id: int, movie_id: int) -> int:
    """
    Mark all of the user's recommendations for a movie as rated.

    Returns:
        Number of rows updated
    """
    updated = session.query(Recommendation).filter(
        Recommendation.user_id == user_id,
        Recommendation.movie_id == movie_id,
    ).update({Recommendation.rated: True}, synchronize_session=False)
    session.commit()
    return updated


def get_recommendation_status(session: Session, user_id: int) -> Dict[str, int]:
    """
    Count the user's recommendation queue by state.

    Returns:
        Dictionary with:
        - total: All recommendation rows
        - unshown: Not yet served and not rated
        - shown: Served but not rated
        - rated: Rated by the user
        - available: unshown + shown
    """
    base = session.query(func.count(Recommendation.recommendation_id)).filter(
        Recommendation.user_id == user_id
    )
    total = base.scalar()
    unshown = base.filter(
        Recommendation.shown.is_(False), Recommendation.rated.is_(False)
    ).scalar()
    shown = base.filter(
        Recommendation.shown.is_(True), Recommendation.rated.is_(False)
    ).scalar()
    rated = base.filter(Recommendation.rated.is_(True)).scalar()

    return {
        'total': total or 0,
        'unshown': unshown or 0,
        'shown': shown or 0,
        'rated': rated or 0,
        'available': (unshown or 0) + (shown or 0),
    }
