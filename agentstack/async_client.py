"""
agentstack async client.

Wires the chain reader, registration fetcher, verifier, scanner and probe
together behind one object.
"""

import os
from typing import Any

from agentstack.constants import DEFAULT_IPFS_GATEWAY, IDENTITY_REGISTRY_ADDRESS, SUPPORTED_CHAINS
from agentstack.exceptions import ConfigurationError
from agentstack.multichain import MultichainScanner, ScanOptions
from agentstack.probe import CapabilityProbe
from agentstack.rpc import ChainReader, JsonRpcChainReader
from agentstack.transport import HTTPRegistrationFetcher, RegistrationFetcher
from agentstack.types.discovery import ChainRegistration
from agentstack.types.identity import VerificationResult
from agentstack.types.probe import AgentProbeResult
from agentstack.types.registration import RegistrationFile
from agentstack.verify import IdentityVerifier


def parse_rpc_urls(value: str) -> dict[int, str]:
    """
    Parse an ``AGENTSTACK_RPC_URLS`` value.

    Format: ``"8453=https://base.example,1=https://eth.example"``.

    Raises:
        ConfigurationError: If an entry is malformed
    """
    urls: dict[int, str] = {}
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        chain_id, sep, url = entry.partition("=")
        chain_id, url = chain_id.strip(), url.strip()
        if not sep or not chain_id.isdigit() or not url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Invalid AGENTSTACK_RPC_URLS entry {entry!r}. Expected '<chainId>=<http(s) url>'"
            )
        urls[int(chain_id)] = url
    return urls


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name}: {raw!r} is not a number") from e
    if value <= 0:
        raise ConfigurationError(f"Invalid {name}: must be positive, got {raw!r}")
    return value


def env_config(timeout: float, probe_timeout: float) -> dict[str, Any]:
    """Constructor arguments read from ``AGENTSTACK_*`` environment variables."""
    rpc_urls = {chain_id: chain.rpc_url for chain_id, chain in SUPPORTED_CHAINS.items()}
    raw_urls = os.environ.get("AGENTSTACK_RPC_URLS")
    if raw_urls:
        rpc_urls.update(parse_rpc_urls(raw_urls))

    return {
        "rpc_urls": rpc_urls,
        "ipfs_gateway": os.environ.get("AGENTSTACK_IPFS_GATEWAY") or DEFAULT_IPFS_GATEWAY,
        "timeout": _env_float("AGENTSTACK_TIMEOUT", timeout),
        "probe_timeout": _env_float("AGENTSTACK_PROBE_TIMEOUT", probe_timeout),
    }


class AsyncAgentStackClient:
    """
    Async client for ERC-8004 agent identities.

    Example:
        ```python
        import asyncio
        from agentstack import AsyncAgentStackClient

        async def main():
            async with AsyncAgentStackClient() as client:
                result = await client.verify(
                    "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376"
                )
                print(result.valid, result.owner)

                for row in await client.find_all_registrations("0x1be9..."):
                    print(row.chain_name, row.global_id)

        asyncio.run(main())
        ```
    """

    DEFAULT_TIMEOUT = 10.0
    DEFAULT_PROBE_TIMEOUT = 5.0

    def __init__(
        self,
        rpc_urls: dict[int, str] | None = None,
        ipfs_gateway: str = DEFAULT_IPFS_GATEWAY,
        timeout: float = DEFAULT_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        chain_reader: ChainReader | None = None,
        fetcher: RegistrationFetcher | None = None,
    ) -> None:
        """
        Initialize the async client.

        Args:
            rpc_urls: Chain ID to RPC URL map (default: the built-in chain table)
            ipfs_gateway: IPFS HTTP gateway for ipfs:// registration URIs
            timeout: Timeout in seconds for RPC calls and registration fetches
            probe_timeout: Timeout in seconds for the payment probe
            chain_reader: Custom ChainReader (overrides rpc_urls and timeout)
            fetcher: Custom RegistrationFetcher (overrides ipfs_gateway and timeout)
        """
        self.timeout = timeout
        self.probe_timeout = probe_timeout

        self._owns_reader = chain_reader is None
        self._owns_fetcher = fetcher is None
        self.chain_reader = chain_reader or JsonRpcChainReader(rpc_urls=rpc_urls, timeout=timeout)
        self.fetcher = fetcher or HTTPRegistrationFetcher(ipfs_gateway=ipfs_gateway, timeout=timeout)

        self.identity = IdentityVerifier(self.chain_reader, self.fetcher)
        self.scanner = MultichainScanner(self.chain_reader, self.fetcher)
        self.prober = CapabilityProbe(self.identity, timeout=probe_timeout)

    @classmethod
    def from_env(
        cls,
        timeout: float = DEFAULT_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> "AsyncAgentStackClient":
        """
        Create an async client from environment variables.

        Environment variables:
            AGENTSTACK_RPC_URLS: ``chainId=url`` pairs, comma separated, merged
                over the built-in chain table (optional)
            AGENTSTACK_IPFS_GATEWAY: IPFS gateway base URL (optional)
            AGENTSTACK_TIMEOUT: RPC/fetch timeout in seconds (optional)
            AGENTSTACK_PROBE_TIMEOUT: Payment probe timeout in seconds (optional)

        Raises:
            ConfigurationError: If a variable is malformed
        """
        return cls(**env_config(timeout, probe_timeout))

    async def verify(self, global_id: str) -> VerificationResult:
        return await self.identity.verify(global_id)

    async def probe(self, global_id: str) -> AgentProbeResult:
        return await self.prober.probe(global_id)

    async def find_all_registrations(
        self,
        wallet: str,
        chain_ids: list[int] | None = None,
        options: ScanOptions | None = None,
    ) -> list[ChainRegistration]:
        """Scan every configured chain for identities ``wallet`` owns."""
        return await self.scanner.scan(wallet, chain_ids=chain_ids, options=options)

    async def get_mcp_endpoint(self, global_id: str) -> str | None:
        return await self.identity.get_mcp_endpoint(global_id)

    async def get_a2a_endpoint(self, global_id: str) -> str | None:
        return await self.identity.get_a2a_endpoint(global_id)

    async def get_agent_count(
        self,
        wallet: str,
        chain_id: int,
        registry: str = IDENTITY_REGISTRY_ADDRESS,
    ) -> int:
        return await self.identity.get_agent_count(wallet, chain_id, registry)

    async def fetch_registration(self, uri: str) -> RegistrationFile:
        return await self.identity.fetch_registration(uri)

    async def close(self) -> None:
        """Close the client and the collaborators it created."""
        await self.prober.close()
        if self._owns_fetcher:
            await self.fetcher.close()
        if self._owns_reader:
            await self.chain_reader.close()

    async def __aenter__(self) -> "AsyncAgentStackClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()
