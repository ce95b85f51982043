"""
CineMate Recommendation API package.

This package contains the REST API, the bulk recommendation pipeline,
outbound API clients, database operations, and utilities.
"""

__version__ = "1.0.0"
