#!/usr/bin/env python3
"""
agentstack - Probe an Agent Before Connecting

Verifies the identity, resolves the MCP/A2A/web endpoints and, for agents
that accept x402 payments, asks the MCP endpoint what a call costs.

Run with: python examples/probe_agent.py "eip155:8453:0x8004...#2376"
"""

import json
import logging
import sys

from agentstack import AgentStackClient, PaymentProbeStatus, configure_logging

DEFAULT_AGENT = "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376"


def main() -> None:
    global_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_AGENT

    # Show the RPC and HTTP traffic the probe generates (keys are masked)
    configure_logging(level=logging.INFO, rpc_level=logging.DEBUG, http_level=logging.DEBUG)

    with AgentStackClient.from_env(probe_timeout=3.0) as client:
        info = client.probe(global_id)

    if not info.verified:
        print(f"Could not verify {global_id}: {info.error}")
        sys.exit(1)

    print(f"MCP endpoint: {info.endpoints.mcp}")
    print(f"A2A card:     {info.endpoints.a2a}")

    if info.payment_probe is PaymentProbeStatus.DISCOVERED:
        price = info.payment_requirements
        print(f"Price:        {price.amount} of {price.asset} on {price.network}")
        print(f"Pay to:       {price.pay_to}")
    elif info.accepts_payment:
        print(f"Accepts x402 but the price is unknown ({info.payment_probe.value})")

    print()
    print(json.dumps(info.to_dict(), indent=2))


if __name__ == "__main__":
    main()
