"""
Base interface for the remote document store.

The store holds one JSON drawing document and a flat folder of archived
images on a single branch. Every file carries a content hash assigned by
the store; updates and deletes must present the current hash, so a writer
holding a stale hash is rejected instead of silently overwriting.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..models import RemoteFile


class RemoteDocumentStore(ABC):
    """
    Abstract read-modify-write client for one repository/branch pair.

    Errors are reported with the classes in pixelbridge.errors:
    AuthError/ForbiddenError for credential problems, NotFoundError for a
    missing repository or path, ConflictError for a stale hash and
    TransientError for rate limiting and network failures. Nothing is
    retried internally.
    """

    @abstractmethod
    async def read_hash(self, path: str) -> Optional[str]:
        """Return the current content hash of path, or None if it does not exist."""
        pass

    @abstractmethod
    async def write(self, path: str, content: bytes, message: str, expected_hash: Optional[str] = None) -> str:
        """
        Create or replace path and return the new content hash.

        With expected_hash None the path must not exist yet; otherwise
        expected_hash must match the current hash. Raises ConflictError
        when either precondition fails.
        """
        pass

    @abstractmethod
    async def list(self, folder: str) -> List[RemoteFile]:
        """Files directly under folder. An absent folder yields an empty list."""
        pass

    @abstractmethod
    async def delete(self, path: str, expected_hash: str, message: str) -> None:
        """
        Remove path.

        Raises NotFoundError when the path has no current hash and
        ConflictError when expected_hash is stale.
        """
        pass

    @abstractmethod
    async def read(self, path: str) -> Tuple[bytes, str]:
        """Return (content, hash) of path. Raises NotFoundError if absent."""
        pass

    @abstractmethod
    async def check_repository(self) -> dict:
        """
        Verify the repository is reachable with the configured credential.

        Returns a dict of diagnostics (at least ``push`` permission).
        """
        pass

    @abstractmethod
    async def branch_exists(self, branch: str) -> bool:
        pass
