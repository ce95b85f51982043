"""
SQLAlchemy ORM models for the recommendation service database.

This module defines the User, Movie, Rating, WatchlistItem and
Recommendation tables with their relationships and constraints.
"""

from datetime import datetime
from typing import List
from sqlalchemy import (
    Integer, String, Float, Text, Boolean, ForeignKey,
    CheckConstraint, UniqueConstraint, Index, TIMESTAMP
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class User(Base):
    """
    Account table.

    Attributes:
        user_id: Primary key, auto-incremented
        email: Login email (unique)
        name: Display name
        password_hash: bcrypt hash of the password
        languages: JSON array of preferred languages/cinemas stored as text
        created_at: Timestamp when record was created
        updated_at: Timestamp when record was last updated
    """
    __tablename__ = 'users'

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=True)
    languages: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    ratings: Mapped[List["Rating"]] = relationship(
        "Rating",
        back_populates="user",
        cascade="all, delete-orphan"
    )
    watchlist: Mapped[List["WatchlistItem"]] = relationship(
        "WatchlistItem",
        back_populates="user",
        cascade="all, delete-orphan"
    )
    recommendations: Mapped[List["Recommendation"]] = relationship(
        "Recommendation",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, email='{self.email}')>"


class Movie(Base):
    """
    Title metadata.

    movie_id is the TMDB id when one could be resolved, otherwise a
    deterministic id derived from title and year.
    """
    __tablename__ = 'movies'

    movie_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    original_title: Mapped[str] = mapped_column(Text, nullable=True)
    release_year: Mapped[int] = mapped_column(Integer, nullable=True)
    language: Mapped[str] = mapped_column(String(10), nullable=True)
    genres: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON array as text
    overview: Mapped[str] = mapped_column(Text, nullable=True)
    poster_path: Mapped[str] = mapped_column(Text, nullable=True)
    runtime: Mapped[int] = mapped_column(Integer, nullable=True)
    imdb_rating: Mapped[float] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    __table_args__ = (
        Index('idx_movies_title', 'title'),
        Index('idx_movies_year', 'release_year'),
    )

    def __repr__(self) -> str:
        return f"<Movie(movie_id={self.movie_id}, title='{self.title}', year={self.release_year})>"


class Rating(Base):
    """
    User rating for a title (1.0 to 5.0).
    """
    __tablename__ = 'ratings'

    rating_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('users.user_id', ondelete='CASCADE'),
        nullable=False
    )
    movie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('movies.movie_id', ondelete='CASCADE'),
        nullable=False
    )
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    user: Mapped["User"] = relationship("User", back_populates="ratings")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name='check_rating_range'),
        UniqueConstraint('user_id', 'movie_id', name='unique_user_movie'),
        Index('idx_ratings_user', 'user_id'),
        Index('idx_ratings_timestamp', 'created_at'),
    )

    def __repr__(self) -> str:
        return f"<Rating(rating_id={self.rating_id}, user_id={self.user_id}, movie_id={self.movie_id}, rating={self.rating})>"


class WatchlistItem(Base):
    """
    Title saved by a user to watch later.
    """
    __tablename__ = 'watchlist_items'

    item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('users.user_id', ondelete='CASCADE'),
        nullable=False
    )
    movie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('movies.movie_id', ondelete='CASCADE'),
        nullable=False
    )
    added_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp()
    )

    user: Mapped["User"] = relationship("User", back_populates="watchlist")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        UniqueConstraint('user_id', 'movie_id', name='unique_watchlist_user_movie'),
        Index('idx_watchlist_user', 'user_id'),
    )

    def __repr__(self) -> str:
        return f"<WatchlistItem(item_id={self.item_id}, user_id={self.user_id}, movie_id={self.movie_id})>"


class Recommendation(Base):
    """
    One ranked entry of a generated recommendation batch.

    Attributes:
        batch_id: uuid4 shared by all rows of one generation run
        position: 1-based rank within the batch
        reason: Model-provided justification
        match_percentage: Predicted affinity (0 to 100)
        shown: Set once the row was served by the next-recommendations endpoint
        rated: Set once the user rated the recommended title
    """
    __tablename__ = 'recommendations'

    recommendation_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('users.user_id', ondelete='CASCADE'),
        nullable=False
    )
    movie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('movies.movie_id', ondelete='CASCADE'),
        nullable=False
    )
    batch_id: Mapped[str] = mapped_column(String(36), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=True)
    match_percentage: Mapped[int] = mapped_column(Integer, nullable=True)
    shown: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        server_default=func.current_timestamp()
    )

    user: Mapped["User"] = relationship("User", back_populates="recommendations")
    movie: Mapped["Movie"] = relationship("Movie")

    __table_args__ = (
        CheckConstraint(
            "match_percentage IS NULL OR (match_percentage >= 0 AND match_percentage <= 100)",
            name='check_match_percentage'
        ),
        Index('idx_recommendations_user', 'user_id'),
        Index('idx_recommendations_batch', 'batch_id'),
    )

    def __repr__(self) -> str:
        return (
            f"<Recommendation(recommendation_id={self.recommendation_id}, user_id={self.user_id}, "
            f"movie_id={self.movie_id}, batch_id='{self.batch_id}', position={self.position})>"
        )
