"""
Server-side x402 gating helpers.

For agents that sell access to their MCP tools: decide which calls need
payment, build the 402 challenge that advertises the price, and build the
``agent://identity`` resource that lets callers check who they are paying.
Payment verification and settlement belong to the payment engine and are
not handled here.
"""

import base64
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from agentstack.exceptions import ConfigurationError
from agentstack.globalid import is_address
from agentstack.probe import PAYMENT_REQUIRED_HEADER, PAYMENT_REQUIRED_STATUS
from agentstack.types.identity import AgentRef
from agentstack.types.registration import RegistrationFile

X402_VERSION = 1
PAYMENT_HEADER = "X-PAYMENT"
IDENTITY_RESOURCE_URI = "agent://identity"

# Native USDC on Base (6 decimals)
USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


@dataclass(frozen=True)
class PaymentGateConfig:
    """
    Pricing for a paid capability server.

    Attributes:
        pay_to: Wallet receiving payments
        amount: Price per call in the asset's smallest unit
        asset: Token contract address
        network: CAIP-2 network of the asset
        description: Human-readable price description
        free_tools: Tools that never require payment
        scheme: x402 payment scheme
        max_timeout_seconds: How long a payment authorization stays usable
    """

    pay_to: str
    amount: str
    asset: str = USDC_BASE
    network: str = "eip155:8453"
    description: str = ""
    free_tools: tuple[str, ...] = ("ping",)
    scheme: str = "exact"
    max_timeout_seconds: int = 60

    def __post_init__(self) -> None:
        if not is_address(self.pay_to):
            raise ConfigurationError(f"pay_to must be an address, got {self.pay_to!r}")
        if not self.amount.isdigit():
            raise ConfigurationError(
                f"amount must be a non-negative integer string, got {self.amount!r}"
            )


class PaymentGate:
    """
    Builds x402 challenges for a paid capability server.

    Example:
        ```python
        gate = PaymentGate(PaymentGateConfig(pay_to="0x...", amount="1000"))

        if gate.requires_payment(tool_name) and not gate.has_payment(request.headers):
            return Response(
                status_code=402,
                headers=gate.challenge_headers("mcp://tools/get-price"),
                content=json.dumps(gate.challenge("mcp://tools/get-price")),
            )
        ```
    """

    status_code = PAYMENT_REQUIRED_STATUS

    def __init__(self, config: PaymentGateConfig) -> None:
        self.config = config

    def requires_payment(self, tool: str) -> bool:
        """True unless ``tool`` is on the free list."""
        return tool not in self.config.free_tools

    def requirements(self, resource: str) -> dict[str, Any]:
        """One entry of the challenge's ``accepts`` array."""
        return {
            "scheme": self.config.scheme,
            "network": self.config.network,
            "maxAmountRequired": self.config.amount,
            "resource": resource,
            "description": self.config.description,
            "mimeType": "application/json",
            "payTo": self.config.pay_to,
            "maxTimeoutSeconds": self.config.max_timeout_seconds,
            "asset": self.config.asset,
        }

    def challenge(self, resource: str, error: str = "payment required") -> dict[str, Any]:
        """The 402 response body."""
        return {
            "x402Version": X402_VERSION,
            "error": error,
            "accepts": [self.requirements(resource)],
        }

    def challenge_header(self, resource: str) -> str:
        """The challenge as a base64 JSON header value."""
        body = json.dumps(self.challenge(resource), separators=(",", ":"))
        return base64.b64encode(body.encode("utf-8")).decode("ascii")

    def challenge_headers(self, resource: str) -> dict[str, str]:
        return {PAYMENT_REQUIRED_HEADER: self.challenge_header(resource)}

    def has_payment(self, headers: Mapping[str, str]) -> bool:
        """True if the request carries a payment header (not verified)."""
        wanted = PAYMENT_HEADER.lower()
        return any(name.lower() == wanted and value for name, value in headers.items())


def identity_resource(ref: AgentRef, registration: RegistrationFile | None = None) -> dict[str, Any]:
    """
    Body of the ``agent://identity`` resource.

    Args:
        ref: The server's own on-chain identity
        registration: Its registration file, if loaded
    """
    body: dict[str, Any] = {
        "uri": IDENTITY_RESOURCE_URI,
        "globalId": ref.global_id,
        "chainId": ref.chain_id,
        "agentRegistry": ref.registry_id,
        "agentId": ref.agent_id,
    }
    if registration is not None:
        body["registration"] = registration.to_dict()
    return body
