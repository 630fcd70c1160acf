"""
GitHub contents API implementation of the remote document store.

Uses the repository contents endpoints:
  GET    /repos/{repo}/contents/{path}?ref={branch}
  PUT    /repos/{repo}/contents/{path}
  DELETE /repos/{repo}/contents/{path}
GitHub enforces the sha precondition on PUT and DELETE (409 on a stale
sha, 422 when a sha is missing for an existing file), which is what makes
concurrent writers fail instead of overwriting each other.
"""

import base64
import logging
from typing import List, Optional, Tuple
from urllib.parse import quote

import httpx

from ..config import Settings
from ..errors import (
    AuthError,
    BridgeError,
    ConfigError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransientError,
)
from ..models import RemoteFile
from ..utils import log_store_delete, log_store_write
from .base import RemoteDocumentStore

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


def _error_message(response: httpx.Response) -> str:
    """Pull GitHub's ``message`` out of an error body, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def map_response_error(response: httpx.Response, action: str) -> BridgeError:
    """Translate a failed GitHub response into the service error taxonomy."""
    status = response.status_code
    message = _error_message(response)

    if status == 401:
        return AuthError(
            f"GitHub rejected the token while trying to {action}: {message}. "
            "Check that GITHUB_TOKEN is valid and not expired."
        )
    if status == 429 or (status == 403 and response.headers.get("x-ratelimit-remaining") == "0"):
        return TransientError(f"GitHub rate limit hit while trying to {action}: {message}")
    if status == 403:
        return ForbiddenError(
            f"GitHub refused to {action}: {message}. "
            "The token needs the 'repo' (or 'contents: write') scope for this repository."
        )
    if status == 404:
        return NotFoundError(f"Not found while trying to {action}: {message}")
    if status in (409, 422):
        return ConflictError(f"Conflicting change while trying to {action}: {message}")
    if status >= 500:
        return TransientError(f"GitHub error while trying to {action}: {message}")
    return BridgeError(f"Unexpected GitHub response while trying to {action}: {message}")


class GitHubStore(RemoteDocumentStore):
    """
    Remote document store backed by a GitHub repository branch.

    Usage:
        async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
            store = GitHubStore(settings, client)
            sha = await store.read_hash("drawing.json")
            await store.write("drawing.json", data, "Update drawing", sha)
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def _require_config(self):
        missing = self.settings.missing()
        if missing:
            raise ConfigError(
                f"Server not configured: missing {' and '.join(missing)} environment variable"
                f"{'s' if len(missing) > 1 else ''}"
            )

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.github_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _contents_url(self, path: str) -> str:
        return (
            f"{self.settings.github_api_url}/repos/{self.settings.github_repo}"
            f"/contents/{quote(path.strip('/'))}"
        )

    async def _request(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        self._require_config()
        try:
            return await self.client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f"Timed out trying to {action}: {e}")
        except httpx.TransportError as e:
            raise TransientError(f"Network error trying to {action}: {e}")

    async def _get_contents(self, path: str, action: str) -> Optional[httpx.Response]:
        """GET the contents entry for path; None on 404."""
        response = await self._request(
            "GET",
            self._contents_url(path),
            action,
            params={"ref": self.settings.github_branch},
        )
        if response.status_code == 404:
            return None
        if response.is_error:
            raise map_response_error(response, action)
        return response

    async def read_hash(self, path: str) -> Optional[str]:
        response = await self._get_contents(path, f"look up {path}")
        if response is None:
            return None
        data = response.json()
        if isinstance(data, list):
            raise NotFoundError(f"{path} is a folder, not a file")
        return data.get("sha")

    async def read(self, path: str) -> Tuple[bytes, str]:
        response = await self._get_contents(path, f"read {path}")
        if response is None:
            raise NotFoundError(f"{path} does not exist on branch {self.settings.github_branch}")
        data = response.json()
        if isinstance(data, list):
            raise NotFoundError(f"{path} is a folder, not a file")

        if data.get("encoding") == "base64" and data.get("content"):
            return base64.b64decode(data["content"]), data["sha"]

        # Files over 1 MB come back without inline content
        download_url = data.get("download_url")
        if not download_url:
            return b"", data["sha"]
        raw = await self._request("GET", download_url, f"download {path}")
        if raw.is_error:
            raise map_response_error(raw, f"download {path}")
        return raw.content, data["sha"]

    async def write(self, path: str, content: bytes, message: str, expected_hash: Optional[str] = None) -> str:
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.settings.github_branch,
        }
        if expected_hash:
            payload["sha"] = expected_hash

        action = f"write {path}"
        response = await self._request("PUT", self._contents_url(path), action, json=payload)
        if response.is_error:
            error = map_response_error(response, action)
            log_store_write(path, message, expected_hash, None, success=False, details=error.message)
            raise error

        new_sha = response.json().get("content", {}).get("sha")
        log_store_write(path, message, expected_hash, new_sha, success=True)
        return new_sha

    async def list(self, folder: str) -> List[RemoteFile]:
        response = await self._get_contents(folder, f"list {folder}")
        if response is None:
            return []
        data = response.json()
        if not isinstance(data, list):
            return []
        return [
            RemoteFile(
                name=entry["name"],
                path=entry["path"],
                sha=entry["sha"],
                size=entry.get("size", 0),
            )
            for entry in data
            if entry.get("type") == "file"
        ]

    async def delete(self, path: str, expected_hash: str, message: str) -> None:
        if not expected_hash:
            raise NotFoundError(f"{path} does not exist")

        action = f"delete {path}"
        response = await self._request(
            "DELETE",
            self._contents_url(path),
            action,
            json={
                "message": message,
                "sha": expected_hash,
                "branch": self.settings.github_branch,
            },
        )
        if response.is_error:
            error = map_response_error(response, action)
            log_store_delete(path, expected_hash, success=False, details=error.message)
            raise error
        log_store_delete(path, expected_hash, success=True)

    async def check_repository(self) -> dict:
        action = f"access repository {self.settings.github_repo}"
        response = await self._request(
            "GET",
            f"{self.settings.github_api_url}/repos/{self.settings.github_repo}",
            action,
        )
        if response.is_error:
            raise map_response_error(response, action)
        data = response.json()
        permissions = data.get("permissions") or {}
        return {
            "repo": data.get("full_name", self.settings.github_repo),
            "private": data.get("private"),
            "defaultBranch": data.get("default_branch"),
            "push": bool(permissions.get("push", False)),
        }

    async def branch_exists(self, branch: str) -> bool:
        action = f"look up branch {branch}"
        response = await self._request(
            "GET",
            f"{self.settings.github_api_url}/repos/{self.settings.github_repo}/branches/{quote(branch)}",
            action,
        )
        if response.status_code == 404:
            return False
        if response.is_error:
            raise map_response_error(response, action)
        return True
