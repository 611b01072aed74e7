#!/usr/bin/env python3
"""
agentstack - Find Every Identity a Wallet Owns

Scans the supported chains concurrently. Chains that are slow or down are
skipped; the scan still returns whatever the other chains reported.

Run with: python examples/find_registrations.py 0xWALLET [chainId ...]
"""

import asyncio
import sys

from agentstack import AsyncAgentStackClient, ScanOptions
from agentstack.exceptions import MalformedIdentifierError


async def main(wallet: str, chain_ids: list[int] | None) -> None:
    options = ScanOptions(fetch_registration=True, timeout_per_chain=10.0, deadline=30.0)

    async with AsyncAgentStackClient.from_env() as client:
        try:
            rows = await client.find_all_registrations(wallet, chain_ids=chain_ids, options=options)
        except MalformedIdentifierError as e:
            print(f"Error: {e}")
            sys.exit(1)

    if not rows:
        print(f"{wallet} owns no agent identities on the scanned chains")
        return

    for row in rows:
        name = row.registration.name if row.registration else "(registration unavailable)"
        print(f"{row.chain_name:<14} #{row.agent_id:<6} {name}")
        print(f"{'':<14} {row.global_id}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    chains = [int(arg) for arg in sys.argv[2:]] or None
    asyncio.run(main(sys.argv[1], chains))
