"""Shared pytest configuration for envstack tests."""

pytest_plugins = ["envstack.testing.pytest_fixtures"]
