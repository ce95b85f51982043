"""
Database module for the recommendation service.

This module provides database models, connection management, and CRUD operations
for the SQLite database using SQLAlchemy ORM.
"""

from cinemate.database.models import Base, User, Movie, Rating, WatchlistItem, Recommendation
from cinemate.database.connection import DatabaseManager, get_db_manager
from cinemate.database.init_db import init_database, verify_schema
from cinemate.database import crud

__all__ = [
    # Models
    'Base',
    'User',
    'Movie',
    'Rating',
    'WatchlistItem',
    'Recommendation',
    # Connection
    'DatabaseManager',
    'get_db_manager',
    # Initialization
    'init_database',
    'verify_schema',
    # CRUD module
    'crud',
]
