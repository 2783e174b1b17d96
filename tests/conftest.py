"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- HTTP clients
- Mock settings/configuration
- Sample message sources
- A controllable clock for TTL tests
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from imap_proxy.api.app import create_app
from imap_proxy.config import Settings
from imap_proxy.models.api_models import ProxyRequest
from imap_proxy.transport import TransporterCache
from .fixtures.emails import SAMPLE_EMAILS


class FakeClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transporter_cache(fake_clock) -> TransporterCache:
    """Cache with a fake clock; the default factory opens no connections."""
    return TransporterCache(ttl_seconds=300.0, clock=fake_clock)


@pytest_asyncio.fixture
async def async_client(transporter_cache) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient instance bound to an app without proxy secret
    """
    app = create_app(proxy_secret="", transporter_cache=transporter_cache)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def secured_client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for an app requiring X-Proxy-Secret: s3cret.

    Yields:
        AsyncClient instance
    """
    app = create_app(proxy_secret="s3cret")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create mock settings for testing with safe defaults.

    Returns:
        Settings instance with test configuration
    """
    return Settings(
        proxy_secret=None,
        log_level="INFO",
        log_json=False,  # Easier to read in tests
    )


@pytest.fixture
def account_payload() -> dict:
    """JSON body fields identifying a test account."""
    return {
        "imap_host": "imap.example.com",
        "imap_port": 993,
        "imap_username": "user@example.com",
        "imap_password": "imap-secret",
        "smtp_host": "smtp.example.com",
        "smtp_port": 465,
        "email": "user@example.com",
        "display_name": "Test User",
    }


@pytest.fixture
def proxy_request(account_payload) -> ProxyRequest:
    return ProxyRequest(**account_payload)


@pytest.fixture
def sample_eml_bytes() -> bytes:
    """
    Get simple plain text email bytes for basic tests.

    Returns:
        bytes of a simple .eml file
    """
    return SAMPLE_EMAILS["simple_plain_text"]


@pytest.fixture
def multipart_alternative_eml() -> bytes:
    return SAMPLE_EMAILS["multipart_alternative"]


@pytest.fixture
def mixed_attachment_eml() -> bytes:
    """
    Get multipart/mixed email with nested alternative body and a PDF.

    Returns:
        bytes of multipart/mixed email
    """
    return SAMPLE_EMAILS["mixed_with_attachment"]


@pytest.fixture
def tmp_eml_file(tmp_path) -> str:
    """
    Create temporary .eml file for file-based tests.

    Args:
        tmp_path: pytest's temporary directory fixture

    Returns:
        Path to temporary .eml file
    """
    eml_path = tmp_path / "test_email.eml"
    eml_path.write_bytes(SAMPLE_EMAILS["mixed_with_attachment"])
    return str(eml_path)


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


# Configuration for pytest-asyncio
def pytest_configure(config):
    """
    Configure pytest with custom markers and settings.
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (API, end-to-end)"
    )
