#!/usr/bin/env python3
"""
agentstack - Verify an Agent Identity

Checks that a global agent ID points at a minted token, reads its owner and
prints what the registration file declares.

Run with: python examples/verify_identity.py "eip155:8453:0x8004...#2376"
"""

import sys

from agentstack import AgentStackClient, VerificationStatus

DEFAULT_AGENT = "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376"


def main() -> None:
    global_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_AGENT

    print("=== agentstack identity verification ===\n")
    client = AgentStackClient.from_env()
    result = client.verify(global_id)

    print(f"Agent:  {global_id}")
    print(f"Status: {result.status.value}")

    if result.owner:
        print(f"Owner:  {result.owner}")

    if result.status is VerificationStatus.VERIFIED:
        registration = result.registration
        print(f"Name:   {registration.name}")
        print(f"Pay to: {result.payment_wallet or result.owner}")
        for service in registration.services:
            print(f"  {service.name:<6} {service.endpoint}")
    else:
        print(f"Error:  {result.error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
