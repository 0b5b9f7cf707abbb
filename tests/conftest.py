"""Shared fixtures for relay tests."""

import pytest

from core.config import Config

FRED_KEY = "fredkey0123456789abcdef"


class RecordingLogger:
    """RequestLogger that keeps calls in memory instead of drawing a dashboard."""

    def __init__(self):
        self.relays = []
        self.errors = []

    def log_relay(self, route, target, status, *, used_fallback=False):
        self.relays.append((route, target, status, used_fallback))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def fred_key(monkeypatch):
    monkeypatch.setenv("FRED_API_KEY", FRED_KEY)
    return FRED_KEY


@pytest.fixture
def config(fred_key):
    return Config()
