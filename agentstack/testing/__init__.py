"""agentstack testing utilities.

Provides in-memory collaborators and fixtures for testing applications that
use agentstack.
"""

from agentstack.testing.fixtures import (
    TEST_AGENT_URI,
    TEST_MCP_ENDPOINT,
    TEST_OTHER_WALLET,
    TEST_WALLET,
    create_registration_file,
)
from agentstack.testing.mock import MockCall, MockChainReader, MockRegistrationFetcher

__all__ = [
    # Mock collaborators
    "MockChainReader",
    "MockRegistrationFetcher",
    "MockCall",
    # Helper functions
    "create_registration_file",
    # Test data
    "TEST_WALLET",
    "TEST_OTHER_WALLET",
    "TEST_AGENT_URI",
    "TEST_MCP_ENDPOINT",
]
