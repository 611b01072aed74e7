"""
agentstack blocking client.

Same surface as AsyncAgentStackClient for scripts and notebooks that are not
running an event loop.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from agentstack.async_client import AsyncAgentStackClient, env_config
from agentstack.constants import DEFAULT_IPFS_GATEWAY, IDENTITY_REGISTRY_ADDRESS
from agentstack.multichain import ScanOptions
from agentstack.rpc import ChainReader
from agentstack.transport import RegistrationFetcher
from agentstack.types.discovery import ChainRegistration
from agentstack.types.identity import VerificationResult
from agentstack.types.probe import AgentProbeResult
from agentstack.types.registration import RegistrationFile

T = TypeVar("T")


class AgentStackClient:
    """
    Blocking client for ERC-8004 agent identities.

    Calls run on a private event loop owned by the client, so injected
    collaborators keep their connections between calls. The client must not
    be used from inside a running loop; use AsyncAgentStackClient there.

    Example:
        ```python
        from agentstack import AgentStackClient

        client = AgentStackClient.from_env()
        info = client.probe("eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376")
        print(info.endpoints.mcp, info.payment_requirements)
        ```
    """

    DEFAULT_TIMEOUT = AsyncAgentStackClient.DEFAULT_TIMEOUT
    DEFAULT_PROBE_TIMEOUT = AsyncAgentStackClient.DEFAULT_PROBE_TIMEOUT

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
        Initialize the client.

        Args:
            rpc_urls: Chain ID to RPC URL map (default: the built-in chain table)
            ipfs_gateway: IPFS HTTP gateway for ipfs:// registration URIs
            timeout: Timeout in seconds for RPC calls and registration fetches
            probe_timeout: Timeout in seconds for the payment probe
            chain_reader: Custom ChainReader (overrides rpc_urls and timeout)
            fetcher: Custom RegistrationFetcher (overrides ipfs_gateway and timeout)
        """
        self.rpc_urls = rpc_urls
        self.ipfs_gateway = ipfs_gateway
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self.chain_reader = chain_reader
        self.fetcher = fetcher
        self._loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_env(
        cls,
        timeout: float = DEFAULT_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> "AgentStackClient":
        """
        Create a client from environment variables.

        Reads the same ``AGENTSTACK_*`` variables as
        AsyncAgentStackClient.from_env.

        Raises:
            ConfigurationError: If a variable is malformed
        """
        return cls(**env_config(timeout, probe_timeout))

    def verify(self, global_id: str) -> VerificationResult:
        return self._run(lambda client: client.verify(global_id))

    def probe(self, global_id: str) -> AgentProbeResult:
        return self._run(lambda client: client.probe(global_id))

    def find_all_registrations(
        self,
        wallet: str,
        chain_ids: list[int] | None = None,
        options: ScanOptions | None = None,
    ) -> list[ChainRegistration]:
        return self._run(
            lambda client: client.find_all_registrations(wallet, chain_ids=chain_ids, options=options)
        )

    def get_mcp_endpoint(self, global_id: str) -> str | None:
        return self._run(lambda client: client.get_mcp_endpoint(global_id))

    def get_a2a_endpoint(self, global_id: str) -> str | None:
        return self._run(lambda client: client.get_a2a_endpoint(global_id))

    def get_agent_count(
        self,
        wallet: str,
        chain_id: int,
        registry: str = IDENTITY_REGISTRY_ADDRESS,
    ) -> int:
        return self._run(lambda client: client.get_agent_count(wallet, chain_id, registry))

    def fetch_registration(self, uri: str) -> RegistrationFile:
        return self._run(lambda client: client.fetch_registration(uri))

    def _run(self, call: Callable[[AsyncAgentStackClient], Awaitable[T]]) -> T:
        async def runner() -> T:
            async with AsyncAgentStackClient(
                rpc_urls=self.rpc_urls,
                ipfs_gateway=self.ipfs_gateway,
                timeout=self.timeout,
                probe_timeout=self.probe_timeout,
                chain_reader=self.chain_reader,
                fetcher=self.fetcher,
            ) as client:
                return await call(client)

        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(runner())

    def close(self) -> None:
        """Close the client's event loop. Injected collaborators are left open."""
        if self._loop is None:
            return
        loop, self._loop = self._loop, None
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()

    def __enter__(self) -> "AgentStackClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()
