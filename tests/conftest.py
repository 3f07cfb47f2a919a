# tests/conftest.py

import sys
import os

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config  # noqa: E402


@pytest.fixture
def fast_config(monkeypatch):
    """No artificial stage delays, no sweeper wake-ups during a test."""
    monkeypatch.setattr(config, "STAGE_DELAY_SECONDS", 0)
    monkeypatch.setattr(config, "SWEEP_INTERVAL_SECONDS", 3600)
    monkeypatch.setattr(config, "BLOCKED_TERMS", ["gore"])


@pytest.fixture
def api_client(fast_config):
    """A TestClient whose lifespan (registry + worker) is running."""
    from main import app

    with TestClient(app) as client:
        yield client


def ocean_payload(**overrides):
    payload = {
        "topic": "Ocean exploration",
        "ratio": "16:9",
        "duration": 120,
        "providers": {"speechify": True, "sora": True, "veo": True},
        "platforms": ["youtube", "tiktok"],
    }
    payload.update(overrides)
    return payload
