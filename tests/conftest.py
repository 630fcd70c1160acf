"""
Pytest configuration and fixtures for testing.

Provides fixtures for:
- A fake GitHub contents API (in memory, behind httpx.MockTransport)
- Settings pointing at it
- A FastAPI TestClient wired to the fake
"""

import pytest
from fastapi.testclient import TestClient

from fake_github import FakeGitHub, make_image
from pixelbridge.app import create_app
from pixelbridge.config import Settings


@pytest.fixture
def fake_github():
    """Fresh in-memory repository per test."""
    return FakeGitHub()


@pytest.fixture
def settings():
    """Configured settings with rate limiting off so tests can hammer endpoints."""
    return Settings(
        github_token="test-token",
        github_repo="owner/repo",
        github_branch="main",
        canvas_size=8,
        rate_limit_enabled=False,
    )


@pytest.fixture
def app_factory(fake_github):
    """Build an app around arbitrary settings, always talking to the fake."""
    def _factory(settings: Settings):
        return create_app(settings, transport=fake_github.transport())
    return _factory


@pytest.fixture
def client(app_factory, settings):
    """Create a test client for the FastAPI app."""
    with TestClient(app_factory(settings)) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client(app_factory):
    """Test client with no GITHUB_TOKEN / GITHUB_REPO."""
    with TestClient(app_factory(Settings(rate_limit_enabled=False))) as test_client:
        yield test_client


@pytest.fixture
def red_png():
    """2x2 fully opaque red PNG."""
    return make_image((2, 2), (255, 0, 0, 255))
