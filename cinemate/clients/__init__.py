"""
Clients for the external services the pipeline depends on.
"""

from cinemate.clients.chat import ChatClient, ChatError, ChatResult
from cinemate.clients.tmdb import TMDBClient, TMDBError

__all__ = ['ChatClient', 'ChatError', 'ChatResult', 'TMDBClient', 'TMDBError']
