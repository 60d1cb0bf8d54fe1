"""Test helpers for projects using envstack.

Register the fixtures in conftest.py:
    pytest_plugins = ["envstack.testing.pytest_fixtures"]
"""

__all__ = ["pytest_fixtures"]
