# tests/unit/conftest.py

from __future__ import annotations
import sys
from pathlib import Path

import httpx
import keyring
import pytest
import structlog

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from solarcode.config import SolarConfig  # noqa: E402

TEST_API_KEY = "up_" + "a1B2c3D4e5" * 3


@pytest.fixture(autouse=True)
def _reset_structlog():
    # The CLI configures structlog globally; keep tests independent of that
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _no_system_keyring(monkeypatch):
    # Default settings try the keyring; never read the machine's real one
    monkeypatch.setattr(keyring, "get_credential", lambda service, username: None)
    monkeypatch.setattr(keyring, "get_password", lambda service, username: None)


@pytest.fixture
def solar_config() -> SolarConfig:
    return SolarConfig(api_key=TEST_API_KEY, model="solar-pro2", max_tokens=4096)


class TrackingStream(httpx.SyncByteStream):
    """Response body that hands out fixed chunks and remembers whether it was closed."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.pulled = 0
        self.closed = False

    def __iter__(self):
        for c in self.chunks:
            self.pulled += 1
            yield c

    def close(self):
        self.closed = True


@pytest.fixture
def mock_client():
    """
    Returns a factory: make(handler) -> (httpx.Client, seen_requests).
    """
    def make(handler):
        seen = []

        def _handler(request: httpx.Request):
            seen.append(request)
            return handler(request)

        return httpx.Client(transport=httpx.MockTransport(_handler)), seen
    return make
