"""
Configuration for the conversion service.

Environment variables:
  GITHUB_TOKEN      - bearer credential for the GitHub contents API
  GITHUB_REPO       - target repository as "owner/name"
  GITHUB_BRANCH     - branch holding the drawing (default: main)
  CANVAS_SIZE       - pixel grid edge length (default: 64)
  PORT              - HTTP port (default: 3000)
  DRAWING_PATH      - path of the drawing document (default: drawing.json)
  IMAGES_FOLDER     - folder for archived uploads (default: images)
  GITHUB_API_URL    - API base URL (default: https://api.github.com)
  GITHUB_RAW_URL    - raw content base URL (default: https://raw.githubusercontent.com)
  HTTP_TIMEOUT      - network timeout in seconds (default: 15)
  MAX_UPLOAD_BYTES  - upload size limit (default: 10 MiB)
  ALPHA_THRESHOLD   - alpha below this is treated as transparent (default: 10)
  RATE_LIMIT_ENABLED - enable per-IP rate limiting (default: true)
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    val = env.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    val = env.get(name)
    if val is None or val.strip() == "":
        return default
    try:
        return int(val)
    except ValueError:
        logger.warning("%s=%s invalid, using default=%s", name, val, default)
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    val = env.get(name)
    if val is None or val.strip() == "":
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning("%s=%s invalid, using default=%s", name, val, default)
        return default


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    val = env.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Process-wide, read-only configuration built once at startup."""
    github_token: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: str = "main"
    canvas_size: int = 64
    port: int = 3000
    drawing_path: str = "drawing.json"
    images_folder: str = "images"
    github_api_url: str = "https://api.github.com"
    github_raw_url: str = "https://raw.githubusercontent.com"
    http_timeout: float = 15.0
    max_upload_bytes: int = 10 * 1024 * 1024
    alpha_threshold: int = 10
    rate_limit_enabled: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            env = os.environ
        token = env.get("GITHUB_TOKEN", "").strip() or None
        repo = env.get("GITHUB_REPO", "").strip() or None
        canvas_size = _env_int(env, "CANVAS_SIZE", 64)
        if canvas_size < 1:
            logger.warning("CANVAS_SIZE=%s must be positive, using default=64", canvas_size)
            canvas_size = 64
        return cls(
            github_token=token,
            github_repo=repo,
            github_branch=_env_str(env, "GITHUB_BRANCH", "main"),
            canvas_size=canvas_size,
            port=_env_int(env, "PORT", 3000),
            drawing_path=_env_str(env, "DRAWING_PATH", "drawing.json"),
            images_folder=_env_str(env, "IMAGES_FOLDER", "images").strip("/"),
            github_api_url=_env_str(env, "GITHUB_API_URL", "https://api.github.com").rstrip("/"),
            github_raw_url=_env_str(env, "GITHUB_RAW_URL", "https://raw.githubusercontent.com").rstrip("/"),
            http_timeout=_env_float(env, "HTTP_TIMEOUT", 15.0),
            max_upload_bytes=_env_int(env, "MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
            alpha_threshold=_env_int(env, "ALPHA_THRESHOLD", 10),
            rate_limit_enabled=_env_bool(env, "RATE_LIMIT_ENABLED", True),
        )

    def missing(self) -> List[str]:
        """Names of required environment variables that are not set."""
        missing = []
        if not self.github_token:
            missing.append("GITHUB_TOKEN")
        if not self.github_repo:
            missing.append("GITHUB_REPO")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing()

    def raw_url(self, path: str) -> str:
        """Public raw URL of a file on the configured branch."""
        return f"{self.github_raw_url}/{self.github_repo}/{self.github_branch}/{path}"

    @property
    def drawing_url(self) -> str:
        return self.raw_url(self.drawing_path)
