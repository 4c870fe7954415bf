"""Pytest configuration and shared fixtures for contextual tests.

This module provides:
- Basic pytest configuration
- Common fixtures (response writer, fake request, call log)
- Setup/teardown for test isolation
"""

import logging
import os
import sys
from pathlib import Path
from typing import List

import pytest

# Add project root to Python path to allow imports from contextual and tests.fixtures
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from contextual import ResponseWriter  # noqa: E402
from tests.fixtures.stages import FakeRequest  # noqa: E402


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (runs through FastAPI)"
    )


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment():
    """Restore environment variables and contextual logger state after each test."""
    original_env = os.environ.copy()
    contextual_logger = logging.getLogger("contextual")
    original_handlers = list(contextual_logger.handlers)
    original_level = contextual_logger.level

    yield

    os.environ.clear()
    os.environ.update(original_env)
    contextual_logger.handlers = original_handlers
    contextual_logger.setLevel(original_level)


# ==================== Pipeline Fixtures ====================

@pytest.fixture
def call_log() -> List[str]:
    """Ordered record of stage and handler calls."""
    return []


@pytest.fixture
def response() -> ResponseWriter:
    return ResponseWriter()


@pytest.fixture
def request_info() -> FakeRequest:
    return FakeRequest(path="/foo")
