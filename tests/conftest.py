"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from inference import StubCompletionBackend  # noqa: E402


@pytest.fixture
def stub_backend():
    """Deterministic backend: echoes prompts, fails on "fail:" prefix."""
    return StubCompletionBackend()
