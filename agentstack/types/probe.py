"""Capability probe models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from agentstack.types.registration import RegistrationFile, RegistrationRef, Service


@dataclass
class Endpoints:
    """Endpoints resolved from the reserved service names."""

    mcp: str | None = None
    a2a: str | None = None
    web: str | None = None


@dataclass(frozen=True)
class PaymentRequirements:
    """Requirements decoded from an x402 payment challenge."""

    amount: str | None = None
    network: str | None = None
    pay_to: str | None = None
    asset: str | None = None
    scheme: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "amount": self.amount,
            "network": self.network,
            "payTo": self.pay_to,
            "asset": self.asset,
            "scheme": self.scheme,
        }
        return {key: value for key, value in data.items() if value is not None}


class PaymentProbeStatus(str, Enum):
    """What happened to the opportunistic payment probe."""

    NOT_ATTEMPTED = "not_attempted"
    UNREACHABLE = "unreachable"
    NO_CHALLENGE = "no_challenge"
    UNDECODABLE = "undecodable"
    DISCOVERED = "discovered"


@dataclass
class AgentProbeResult:
    """
    Everything learned about an agent without connecting to it.

    Fields start at their "not yet known" value and are filled in as the
    probe progresses.
    """

    global_id: str
    verified: bool = False
    owner: str | None = None
    payment_wallet: str | None = None
    registration: RegistrationFile | None = None
    endpoints: Endpoints = field(default_factory=Endpoints)
    accepts_payment: bool = False
    active: bool = False
    services: tuple[Service, ...] = ()
    registrations: tuple[RegistrationRef, ...] = ()
    payment_requirements: PaymentRequirements | None = None
    payment_probe: PaymentProbeStatus = PaymentProbeStatus.NOT_ATTEMPTED
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict (camelCase keys)."""
        return {
            "globalId": self.global_id,
            "verified": self.verified,
            "owner": self.owner,
            "paymentWallet": self.payment_wallet,
            "registration": self.registration.to_dict() if self.registration else None,
            "endpoints": {
                "mcp": self.endpoints.mcp,
                "a2a": self.endpoints.a2a,
                "web": self.endpoints.web,
            },
            "acceptsPayment": self.accepts_payment,
            "active": self.active,
            "services": [service.to_dict() for service in self.services],
            "registrations": [ref.to_dict() for ref in self.registrations],
            "paymentRequirements": (
                self.payment_requirements.to_dict() if self.payment_requirements else None
            ),
            "paymentProbe": self.payment_probe.value,
            "error": self.error,
        }
