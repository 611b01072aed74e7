"""
Pytest plugin for agentstack testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["agentstack.testing.conftest"]

Or import the fixtures directly:

    from agentstack.testing.fixtures import mock_chain, verifier
"""

# Re-export all fixtures for pytest auto-discovery
from agentstack.testing.fixtures import (
    mock_chain,
    mock_fetcher,
    registered_agent,
    registry_address,
    sample_registration,
    sample_registration_document,
    scanner,
    verifier,
    wallet_address,
)

__all__ = [
    "mock_chain",
    "mock_fetcher",
    "verifier",
    "scanner",
    "registry_address",
    "wallet_address",
    "sample_registration_document",
    "sample_registration",
    "registered_agent",
]
