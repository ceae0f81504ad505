"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and small response
fixtures shared across suites. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import httpx
import pytest

from bento import FailureError, FailureException, Success

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_bento_env(monkeypatch):
    """Clear BENTO_* env vars so the default success range applies."""
    for key in list(os.environ.keys()):
        if key.startswith("BENTO_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Sample Outcomes (opt-in)
# =============================================================================


@pytest.fixture
def success() -> Success[str]:
    """A successful outcome carrying ``"foo"``."""
    return Success("foo", status_code=200, headers={"x-page": "1"})


@pytest.fixture
def error() -> FailureError[str]:
    """A 404 outcome with a raw text body."""
    return FailureError(404, error_body=b"foo", headers={"content-type": "text/plain"})


@pytest.fixture
def exception_outcome() -> FailureException[str]:
    """An outcome wrapping a raised ``ValueError``."""
    return FailureException(ValueError("foo"))


@pytest.fixture
def mock_client_factory():
    """Build AsyncClients backed by ``httpx.MockTransport`` handlers."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="https://api.test"
        )

    return _make
