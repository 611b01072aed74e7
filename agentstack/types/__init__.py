"""agentstack type definitions.

This module exports all data model types used by the package.
"""

from agentstack.types.discovery import ChainRegistration
from agentstack.types.identity import AgentRef, VerificationResult, VerificationStatus
from agentstack.types.probe import (
    AgentProbeResult,
    Endpoints,
    PaymentProbeStatus,
    PaymentRequirements,
)
from agentstack.types.registration import RegistrationFile, RegistrationRef, Service

__all__ = [
    # Identity types
    "AgentRef",
    "VerificationResult",
    "VerificationStatus",
    # Registration file types
    "RegistrationFile",
    "RegistrationRef",
    "Service",
    # Discovery types
    "ChainRegistration",
    # Probe types
    "AgentProbeResult",
    "Endpoints",
    "PaymentProbeStatus",
    "PaymentRequirements",
]
