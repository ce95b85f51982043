"""
Database connection management using SQLAlchemy.

This module handles SQLite engine creation, session management,
and provides utilities for database operations.
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from cinemate.database.models import Base


# Default database path
DEFAULT_DB_PATH = "data/cinemate.db"

MEMORY_DB_PATH = ":memory:"


def get_database_url(db_path: str = DEFAULT_DB_PATH) -> str:
    """
    Get SQLite database URL.

    Args:
        db_path: Path to SQLite database file, or ":memory:"

    Returns:
        SQLAlchemy database URL
    """
    if db_path == MEMORY_DB_PATH:
        return "sqlite://"

    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    return f"sqlite:///{os.path.abspath(db_path)}"


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """
    Enable foreign key constraints for SQLite.

    SQLite disables foreign key constraints by default.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Database connection manager.

    Handles engine creation, session management, and database initialization.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, echo: bool = False):
        """
        Initialize database manager.

        Args:
            db_path: Path to SQLite database file
            echo: If True, log all SQL statements (useful for debugging)
        """
        self.db_path = db_path
        self.database_url = get_database_url(db_path)

        # StaticPool keeps one connection, so the request thread and the
        # threadpool used by async routes see the same SQLite database
        self.engine = create_engine(
            self.database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool
        )

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    def create_tables(self):
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """
        Drop all tables defined in the models.

        WARNING: This will delete all data in the database!
        """
        Base.metadata.drop_all(bind=self.engine)

    def reset_database(self):
        """
        Drop and recreate all tables.

        WARNING: This will delete all data in the database!
        """
        self.drop_tables()
        self.create_tables()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Automatically commits on success and rolls back on failure.

        Usage:
            with db_manager.session_scope() as session:
                session.add(user)

        Yields:
            SQLAlchemy Session object
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Close the database engine and all connections."""
        self.engine.dispose()


# Global database manager instance (singleton pattern)
_db_manager: Optional[DatabaseManager] = None


def get_db_manager(db_path: str = DEFAULT_DB_PATH, echo: bool = False) -> DatabaseManager:
    """
    Get or create the global database manager instance.

    Args:
        db_path: Path to SQLite database file
        echo: If True, log all SQL statements

    Returns:
        DatabaseManager instance
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_path=db_path, echo=echo)
    return _db_manager
