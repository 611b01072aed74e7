"""agentstack - ERC-8004 agent identity resolution, discovery and probing."""

from agentstack.async_client import AsyncAgentStackClient
from agentstack.client import AgentStackClient
from agentstack.constants import (
    IDENTITY_REGISTRY_ADDRESS,
    REGISTRATION_TYPE,
    SUPPORTED_CHAINS,
    ChainInfo,
)
from agentstack.exceptions import (
    AgentStackError,
    ChainUnreachableError,
    ConfigurationError,
    InvalidRegistrationError,
    MalformedIdentifierError,
    PaymentChallengeError,
    RegistrationFetchError,
)
from agentstack.gating import PaymentGate, PaymentGateConfig, identity_resource
from agentstack.globalid import format_agent_id, is_address, is_valid_agent_id, parse_agent_id
from agentstack.logging import configure_logging, get_logger
from agentstack.multichain import MultichainScanner, ScanOptions
from agentstack.probe import CapabilityProbe, decode_payment_challenge
from agentstack.registration import (
    get_a2a_endpoint,
    get_mcp_endpoint,
    get_web_endpoint,
    parse_registration,
    resolve_service,
)
from agentstack.rpc import ChainReader, JsonRpcChainReader
from agentstack.transport import HTTPRegistrationFetcher, RegistrationFetcher
from agentstack.types import (
    AgentProbeResult,
    AgentRef,
    ChainRegistration,
    Endpoints,
    PaymentProbeStatus,
    PaymentRequirements,
    RegistrationFile,
    RegistrationRef,
    Service,
    VerificationResult,
    VerificationStatus,
)
from agentstack.verify import IdentityVerifier

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main Clients
    "AgentStackClient",
    "AsyncAgentStackClient",
    # Components
    "IdentityVerifier",
    "MultichainScanner",
    "ScanOptions",
    "CapabilityProbe",
    "PaymentGate",
    "PaymentGateConfig",
    "identity_resource",
    # Collaborators
    "ChainReader",
    "JsonRpcChainReader",
    "RegistrationFetcher",
    "HTTPRegistrationFetcher",
    # Global IDs
    "parse_agent_id",
    "format_agent_id",
    "is_valid_agent_id",
    "is_address",
    # Registration files
    "parse_registration",
    "resolve_service",
    "get_mcp_endpoint",
    "get_a2a_endpoint",
    "get_web_endpoint",
    "decode_payment_challenge",
    # Types
    "AgentRef",
    "AgentProbeResult",
    "ChainRegistration",
    "Endpoints",
    "PaymentProbeStatus",
    "PaymentRequirements",
    "RegistrationFile",
    "RegistrationRef",
    "Service",
    "VerificationResult",
    "VerificationStatus",
    # Constants
    "IDENTITY_REGISTRY_ADDRESS",
    "REGISTRATION_TYPE",
    "SUPPORTED_CHAINS",
    "ChainInfo",
    # Exceptions
    "AgentStackError",
    "ConfigurationError",
    "MalformedIdentifierError",
    "ChainUnreachableError",
    "RegistrationFetchError",
    "InvalidRegistrationError",
    "PaymentChallengeError",
    # Logging
    "configure_logging",
    "get_logger",
]
