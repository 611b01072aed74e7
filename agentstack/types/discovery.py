"""Multi-chain discovery models."""

from dataclasses import dataclass
from typing import Any

from agentstack.types.registration import RegistrationFile


@dataclass(frozen=True)
class ChainRegistration:
    """One agent identity currently owned by the scanned wallet."""

    chain_id: int
    chain_name: str
    agent_id: int
    owner: str
    agent_uri: str
    registration: RegistrationFile | None
    global_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict (camelCase keys)."""
        return {
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "agentId": self.agent_id,
            "owner": self.owner,
            "agentUri": self.agent_uri,
            "registration": self.registration.to_dict() if self.registration else None,
            "globalId": self.global_id,
        }
