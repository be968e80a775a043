"""Shared test fixtures for routechain tests.

This package provides:
- A recording host server that stands in for FastAPI
- Stage factories (continue, halt, raise, record)
- Request/response builders
"""

__all__ = [
    "test_helpers",
]
