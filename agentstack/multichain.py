"""
Multi-chain identity discovery.

Finds every agent identity a wallet currently owns on the identity registry,
across all chains the chain reader can reach. Chains are scanned
concurrently; a slow or broken chain contributes nothing instead of failing
the scan.
"""

import asyncio
from dataclasses import dataclass

from agentstack.constants import IDENTITY_REGISTRY_ADDRESS, chain_name
from agentstack.exceptions import (
    AgentStackError,
    ChainUnreachableError,
    ConfigurationError,
    MalformedIdentifierError,
)
from agentstack.globalid import format_agent_id, is_address, make_agent_ref
from agentstack.logging import get_logger
from agentstack.registration import parse_registration
from agentstack.rpc import ChainReader
from agentstack.transport import RegistrationFetcher
from agentstack.types.discovery import ChainRegistration
from agentstack.types.registration import RegistrationFile

logger = get_logger("scan")


@dataclass
class ScanOptions:
    """
    Options for a multi-chain scan.

    Attributes:
        fetch_registration: Fetch and parse each agent's registration file
        timeout_per_chain: Seconds allowed for the first call on each chain
        registry: Registry contract to scan
        deadline: Seconds allowed for the whole scan (None = no limit)
    """

    fetch_registration: bool = False
    timeout_per_chain: float = 10.0
    registry: str = IDENTITY_REGISTRY_ADDRESS
    deadline: float | None = None


class MultichainScanner:
    """
    Scans chains for agent identities owned by a wallet.

    Example:
        ```python
        scanner = MultichainScanner(JsonRpcChainReader(), HTTPRegistrationFetcher())
        rows = await scanner.scan(
            "0x1234...",
            chain_ids=[1, 8453],
            options=ScanOptions(fetch_registration=True),
        )
        for row in rows:
            print(row.chain_name, row.global_id)
        ```
    """

    def __init__(
        self,
        chain_reader: ChainReader,
        fetcher: RegistrationFetcher | None = None,
    ) -> None:
        self.chain_reader = chain_reader
        self.fetcher = fetcher

    async def scan(
        self,
        wallet: str,
        chain_ids: list[int] | None = None,
        options: ScanOptions | None = None,
    ) -> list[ChainRegistration]:
        """
        Find all identities ``wallet`` currently owns.

        Args:
            wallet: Owner address to scan for
            chain_ids: Chains to scan (default: every chain the reader knows)
            options: Scan options (default: ScanOptions())

        Returns:
            Rows sorted by (chain_id, agent_id)

        Raises:
            MalformedIdentifierError: If ``wallet`` is not an address
        """
        if not is_address(wallet):
            raise MalformedIdentifierError(f"invalid wallet address {wallet!r}")
        if options is None:
            options = ScanOptions()
        if not is_address(options.registry):
            raise MalformedIdentifierError(f"invalid registry address {options.registry!r}")
        if options.fetch_registration and self.fetcher is None:
            raise ConfigurationError("fetch_registration requires a RegistrationFetcher")

        targets = self._targets(chain_ids)
        if not targets:
            return []

        tasks = [
            asyncio.create_task(self._scan_chain(chain_id, wallet, options))
            for chain_id in targets
        ]
        try:
            done, pending = await asyncio.wait(tasks, timeout=options.deadline)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        if pending:
            logger.debug(
                "Scan deadline of %ss reached, dropping chains %s",
                options.deadline,
                sorted(chain_id for chain_id, task in zip(targets, tasks) if task in pending),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        rows: list[ChainRegistration] = []
        for task in done:
            rows.extend(task.result())
        rows.sort(key=lambda row: (row.chain_id, row.agent_id))
        return rows

    def _targets(self, chain_ids: list[int] | None) -> list[int]:
        if chain_ids is None:
            return self.chain_reader.chain_ids()

        targets = []
        for chain_id in sorted(set(chain_ids)):
            if self.chain_reader.has_chain(chain_id):
                targets.append(chain_id)
            else:
                logger.debug("Skipping chain %s: no RPC endpoint configured", chain_id)
        return targets

    async def _scan_chain(
        self, chain_id: int, wallet: str, options: ScanOptions
    ) -> list[ChainRegistration]:
        # Never raises except on cancellation
        try:
            return await self._chain_rows(chain_id, wallet, options)
        except Exception as e:
            logger.debug("Chain %s (%s) failed: %s", chain_id, chain_name(chain_id), e)
            return []

    async def _chain_rows(
        self, chain_id: int, wallet: str, options: ScanOptions
    ) -> list[ChainRegistration]:
        registry = options.registry

        try:
            balance = await asyncio.wait_for(
                self.chain_reader.balance_of(chain_id, registry, wallet),
                timeout=options.timeout_per_chain,
            )
        except asyncio.TimeoutError:
            logger.debug(
                "Chain %s (%s) timed out after %ss",
                chain_id,
                chain_name(chain_id),
                options.timeout_per_chain,
            )
            return []

        if balance == 0:
            return []

        minted = await self.chain_reader.minted_to(chain_id, registry, wallet)
        candidates = list(dict.fromkeys(minted))

        owners = await asyncio.gather(
            *(self._current_owner(chain_id, registry, agent_id) for agent_id in candidates)
        )
        owned = [
            (agent_id, owner)
            for agent_id, owner in zip(candidates, owners)
            if owner is not None and owner.lower() == wallet.lower()
        ]

        rows = await asyncio.gather(
            *(
                self._build_row(chain_id, agent_id, owner, options)
                for agent_id, owner in owned
            )
        )
        logger.debug(
            "Chain %s (%s): balance=%s minted=%s owned=%s",
            chain_id,
            chain_name(chain_id),
            balance,
            len(candidates),
            len(rows),
        )
        return list(rows)

    async def _current_owner(self, chain_id: int, registry: str, agent_id: int) -> str | None:
        try:
            return await self.chain_reader.owner_of(chain_id, registry, agent_id)
        except ChainUnreachableError as e:
            # Burned tokens revert on ownerOf
            if e.code == "CALL_REVERTED":
                return None
            raise

    async def _build_row(
        self, chain_id: int, agent_id: int, owner: str, options: ScanOptions
    ) -> ChainRegistration:
        agent_uri = await self.chain_reader.token_uri(chain_id, options.registry, agent_id)

        registration: RegistrationFile | None = None
        if options.fetch_registration:
            registration = await self._try_fetch(agent_uri)

        ref = make_agent_ref(chain_id, options.registry, agent_id)
        return ChainRegistration(
            chain_id=chain_id,
            chain_name=chain_name(chain_id),
            agent_id=agent_id,
            owner=owner,
            agent_uri=agent_uri,
            registration=registration,
            global_id=format_agent_id(ref),
        )

    async def _try_fetch(self, agent_uri: str) -> RegistrationFile | None:
        try:
            return parse_registration(await self.fetcher.fetch(agent_uri))  # type: ignore[union-attr]
        except AgentStackError as e:
            logger.debug("Registration at %s unavailable: %s", agent_uri, e)
            return None
        except Exception:
            logger.warning("Unexpected error fetching registration at %s", agent_uri, exc_info=True)
            return None
