"""Shared pytest configuration for the agentstack test suite."""

pytest_plugins = ["agentstack.testing.conftest"]
