"""Registration file models.

A registration file is the off-chain JSON document an agent publishes at its
token URI. Parsed files are immutable snapshots.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Service:
    """A service endpoint declared by an agent (MCP, A2A, web, ...)."""

    name: str
    endpoint: str
    version: str | None = None
    skills: tuple[str, ...] = ()
    domains: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "endpoint": self.endpoint}
        if self.version is not None:
            data["version"] = self.version
        if self.skills:
            data["skills"] = list(self.skills)
        if self.domains:
            data["domains"] = list(self.domains)
        return data


@dataclass(frozen=True)
class RegistrationRef:
    """A registration of the same agent on some registry."""

    agent_id: int
    agent_registry: str  # "eip155:<chainId>:<registry address>"

    def to_dict(self) -> dict[str, Any]:
        return {"agentId": self.agent_id, "agentRegistry": self.agent_registry}


@dataclass(frozen=True)
class RegistrationFile:
    """Parsed ERC-8004 registration file."""

    type: str
    name: str
    description: str
    image: str | None = None
    services: tuple[Service, ...] = ()
    x402_support: bool = False
    active: bool = False
    registrations: tuple[RegistrationRef, ...] = ()
    agent_wallet: str | None = None
    supported_trust: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the published JSON shape (camelCase keys)."""
        data: dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "description": self.description,
        }
        if self.image is not None:
            data["image"] = self.image
        data["services"] = [service.to_dict() for service in self.services]
        data["x402Support"] = self.x402_support
        data["active"] = self.active
        data["registrations"] = [ref.to_dict() for ref in self.registrations]
        if self.agent_wallet is not None:
            data["agentWallet"] = self.agent_wallet
        if self.supported_trust:
            data["supportedTrust"] = list(self.supported_trust)
        return data
