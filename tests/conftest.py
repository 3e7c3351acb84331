"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging

import httpx
import pytest

from chatai.config import clear_settings_cache
from chatai.llm import GeminiClient
from chatai.storage import InMemoryStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


# ============================================================================
# Settings and Logging
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point storage at a temp dir and ignore any local .env file."""
    monkeypatch.setenv("CHATAI_ENV_SOURCE", "environment")
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "chatai-data"))
    for name in ("GEMINI_MODEL", "GEMINI_BASE_URL", "STORAGE_BACKEND", "SESSION_SINGLE_FLIGHT"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Capture all log levels and undo logger levels set by the CLI.
    """
    caplog.set_level(logging.DEBUG)
    yield
    for name in ("chatai", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)


# ============================================================================
# Network and Storage Doubles
# ============================================================================


class RecordingTransport:
    """httpx mock transport that replays one canned response and records requests."""

    def __init__(self, status_code=200, json=None, text=None, exc=None):
        self.status_code = status_code
        self.json = json
        self.text = text
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.json is not None:
            return httpx.Response(self.status_code, json=self.json)
        return httpx.Response(self.status_code, text=self.text or "")


@pytest.fixture
def memory_storage():
    return InMemoryStore()


@pytest.fixture
def make_gemini_client():
    """Build GeminiClient instances backed by a RecordingTransport."""

    def _make(**response) -> tuple[GeminiClient, RecordingTransport]:
        transport = RecordingTransport(**response)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        return GeminiClient(model="gemini-test", client=http_client), transport

    return _make
