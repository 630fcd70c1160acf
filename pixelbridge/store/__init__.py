"""
Remote document store clients.
"""

from .base import RemoteDocumentStore
from .github import GitHubStore, map_response_error

__all__ = [
    "RemoteDocumentStore",
    "GitHubStore",
    "map_response_error"
]
