"""Pytest configuration and shared fixtures for routechain tests.

This module provides:
- Basic pytest configuration
- A recording host server and request builders
- Setup/teardown for test isolation
"""

import os
import sys
from pathlib import Path
from typing import Dict

import pytest

# Add project root to Python path to allow imports from routechain and tests.fixtures
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures.test_helpers import RecordingServer  # noqa: E402


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (runs a FastAPI app in-process)"
    )


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment():
    """Isolate each test by preventing environment variable pollution.

    This fixture automatically applies to all tests and ensures that
    environment variables don't leak between tests.
    """
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_env_vars(monkeypatch) -> Dict[str, str]:
    """Provide pipeline environment variables for testing.

    Returns:
        Dict of environment variables that can be modified per test
    """
    env_vars = {
        "API_KEYS": "test-key-1, test-key-2",
        "PIPELINE_VALIDATION_STATUS": "400",
        "LOG_LEVEL": "ERROR",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


# ==================== Host Server Fixtures ====================

@pytest.fixture
def server() -> RecordingServer:
    """Fresh in-memory host server."""
    return RecordingServer()
