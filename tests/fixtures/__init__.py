"""Shared test fixtures for contextual tests.

This package provides:
- Tag-writing stages and handlers for order assertions
- A fake request object for pipeline-only tests
"""

__all__ = [
    "stages",
]
