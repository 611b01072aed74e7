"""
Pytest fixtures for agentstack testing.

Provides common fixtures for testing code that verifies, scans or probes
agent identities.
"""

from typing import Any, Generator

import pytest

from agentstack.constants import IDENTITY_REGISTRY_ADDRESS, REGISTRATION_TYPE
from agentstack.multichain import MultichainScanner
from agentstack.registration import parse_registration
from agentstack.testing.mock import MockChainReader, MockRegistrationFetcher
from agentstack.types.registration import RegistrationFile
from agentstack.verify import IdentityVerifier

TEST_WALLET = "0x1be93C700dDC596D701E8F2106B8F9166C625Adb"
TEST_OTHER_WALLET = "0x000000000000000000000000000000000000dEaD"
TEST_AGENT_URI = "https://agent.example/.well-known/agent-registration.json"
TEST_MCP_ENDPOINT = "https://agent.example/mcp"


def create_registration_file(
    name: str = "Test Agent",
    description: str = "An agent used in tests",
    services: list[dict[str, Any]] | None = None,
    x402_support: bool = False,
    active: bool = True,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create a registration file document with customizable fields.

    Args:
        name: Agent name
        description: Agent description
        services: Service entries (default: one MCP service)
        x402_support: Whether the agent accepts x402 payments
        active: Whether the agent is active
        **kwargs: Additional top-level keys (camelCase, as published)

    Returns:
        The JSON document as a dict
    """
    if services is None:
        services = [{"name": "MCP", "endpoint": TEST_MCP_ENDPOINT, "version": "2025-06-18"}]
    document: dict[str, Any] = {
        "type": REGISTRATION_TYPE,
        "name": name,
        "description": description,
        "services": services,
        "x402Support": x402_support,
        "active": active,
    }
    document.update(kwargs)
    return document


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def mock_chain() -> Generator[MockChainReader, None, None]:
    """
    Provide a MockChainReader that reaches chains 1 and 8453.

    Example:
        ```python
        def test_my_feature(mock_chain):
            mock_chain.mint(8453, 1, wallet, "https://example.com/agent.json")
            ...
            assert mock_chain.was_called("owner_of")
        ```
    """
    reader = MockChainReader(chain_ids=(1, 8453))
    yield reader
    reader.reset()


@pytest.fixture
def mock_fetcher() -> Generator[MockRegistrationFetcher, None, None]:
    """Provide an empty MockRegistrationFetcher."""
    fetcher = MockRegistrationFetcher()
    yield fetcher
    fetcher.reset()


@pytest.fixture
def verifier(mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher) -> IdentityVerifier:
    """Provide an IdentityVerifier over the mock collaborators."""
    return IdentityVerifier(mock_chain, mock_fetcher)


@pytest.fixture
def scanner(mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher) -> MultichainScanner:
    """Provide a MultichainScanner over the mock collaborators."""
    return MultichainScanner(mock_chain, mock_fetcher)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def registry_address() -> str:
    """Provide the identity registry address."""
    return IDENTITY_REGISTRY_ADDRESS


@pytest.fixture
def wallet_address() -> str:
    """Provide a test wallet address."""
    return TEST_WALLET


@pytest.fixture
def sample_registration_document() -> dict[str, Any]:
    """Provide a registration document with MCP and A2A services and x402 enabled."""
    return create_registration_file(
        name="Sample Agent",
        services=[
            {"name": "MCP", "endpoint": TEST_MCP_ENDPOINT},
            {"name": "A2A", "endpoint": "https://agent.example/.well-known/agent-card.json"},
            {"name": "web", "endpoint": "https://agent.example"},
        ],
        x402_support=True,
        registrations=[{"agentId": 1, "agentRegistry": f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}"}],
    )


@pytest.fixture
def sample_registration(sample_registration_document: dict[str, Any]) -> RegistrationFile:
    """Provide the parsed sample registration."""
    return parse_registration(sample_registration_document)


@pytest.fixture
def registered_agent(
    mock_chain: MockChainReader,
    mock_fetcher: MockRegistrationFetcher,
    sample_registration_document: dict[str, Any],
) -> str:
    """
    Mint agent 1 on Base to the test wallet and serve its registration.

    Returns:
        The agent's global ID
    """
    mock_chain.mint(8453, 1, TEST_WALLET, TEST_AGENT_URI)
    mock_fetcher.add(TEST_AGENT_URI, sample_registration_document)
    return f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}#1"
