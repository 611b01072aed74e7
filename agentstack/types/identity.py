"""Agent reference and verification result models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from agentstack.types.registration import RegistrationFile


@dataclass(frozen=True)
class AgentRef:
    """Structured form of a global agent ID ``namespace:chainId:registry#agentId``."""

    namespace: str
    chain_id: int
    registry: str
    agent_id: int

    @property
    def registry_id(self) -> str:
        """The registry as ``namespace:chainId:registry``."""
        return f"{self.namespace}:{self.chain_id}:{self.registry}"

    @property
    def global_id(self) -> str:
        """The canonical global agent ID string."""
        return f"{self.registry_id}#{self.agent_id}"

    def __str__(self) -> str:
        return self.global_id


class VerificationStatus(str, Enum):
    """Outcome of a single identity verification."""

    VERIFIED = "verified"
    MALFORMED_IDENTIFIER = "malformed_identifier"
    CHAIN_UNREACHABLE = "chain_unreachable"
    REGISTRATION_FETCH_FAILED = "registration_fetch_failed"
    INVALID_REGISTRATION = "invalid_registration"
    BACK_REFERENCE_MISMATCH = "back_reference_mismatch"


@dataclass(frozen=True)
class VerificationResult:
    """
    Verdict for one global agent ID.

    ``valid`` is True only when ``status`` is VERIFIED. ``owner`` is filled
    whenever the on-chain ownership lookup succeeded, even if a later step
    failed.
    """

    valid: bool
    owner: str | None
    payment_wallet: str | None
    registration: RegistrationFile | None
    status: VerificationStatus
    error: str | None = None
    ref: AgentRef | None = None
    agent_uri: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict (camelCase keys)."""
        return {
            "valid": self.valid,
            "status": self.status.value,
            "globalId": self.ref.global_id if self.ref else None,
            "owner": self.owner,
            "paymentWallet": self.payment_wallet,
            "agentUri": self.agent_uri,
            "registration": self.registration.to_dict() if self.registration else None,
            "error": self.error,
        }
