#!/usr/bin/env python3
"""
agentstack - Gate MCP Tools Behind x402 Payments

A minimal request handler for a paid capability server. Free tools pass
through, paid tools without an X-PAYMENT header get a 402 challenge, and
the agent://identity resource tells callers which on-chain identity they
are paying.

Run with: python examples/paid_server_gate.py
"""

import json
from typing import Any

from agentstack import PaymentGate, PaymentGateConfig, decode_payment_challenge, identity_resource, parse_agent_id

SELF = parse_agent_id("eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376")

gate = PaymentGate(
    PaymentGateConfig(
        pay_to="0x1be93C700dDC596D701E8F2106B8F9166C625Adb",
        amount="1000",
        description="$0.001 per tool call",
        free_tools=("ping", "list-tools"),
    )
)


def handle(tool: str, headers: dict[str, str]) -> tuple[int, dict[str, str], dict[str, Any]]:
    """Return (status, headers, body) for one MCP tool call."""
    if tool == "identity":
        return 200, {}, identity_resource(SELF)

    resource = f"mcp://tools/{tool}"
    if gate.requires_payment(tool) and not gate.has_payment(headers):
        return gate.status_code, gate.challenge_headers(resource), gate.challenge(resource)

    # A real server verifies and settles the payment with its facilitator here
    return 200, {}, {"tool": tool, "result": "ok"}


def main() -> None:
    for tool, headers in [
        ("ping", {}),
        ("get-price", {}),
        ("get-price", {"X-PAYMENT": "eyJ4NDAyVmVyc2lvbiI6MX0="}),
        ("identity", {}),
    ]:
        status, response_headers, body = handle(tool, headers)
        print(f"{tool:<10} -> {status}")
        if status == 402:
            # What a probing client reads back from the challenge header
            (header,) = response_headers.values()
            print(f"           {decode_payment_challenge(header).to_dict()}")
        else:
            print(f"           {json.dumps(body)}")


if __name__ == "__main__":
    main()
