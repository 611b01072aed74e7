"""
Identity verification.

Checks a global agent ID against its registry: who owns the token, where its
registration file lives, and whether that file is consistent with the
on-chain reference that led to it.
"""

from agentstack.constants import IDENTITY_REGISTRY_ADDRESS
from agentstack.exceptions import (
    ChainUnreachableError,
    InvalidRegistrationError,
    MalformedIdentifierError,
    RegistrationFetchError,
)
from agentstack.globalid import is_address, parse_agent_id
from agentstack.logging import get_logger
from agentstack.registration import (
    check_back_reference,
    get_a2a_endpoint,
    get_mcp_endpoint,
    parse_registration,
)
from agentstack.rpc import ChainReader
from agentstack.transport import RegistrationFetcher
from agentstack.types.identity import AgentRef, VerificationResult, VerificationStatus
from agentstack.types.registration import RegistrationFile

logger = get_logger()


class IdentityVerifier:
    """
    Verifies global agent IDs.

    Example:
        ```python
        verifier = IdentityVerifier(JsonRpcChainReader(), HTTPRegistrationFetcher())
        result = await verifier.verify(
            "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376"
        )
        if result.valid:
            print(result.owner, result.registration.name)
        ```
    """

    def __init__(self, chain_reader: ChainReader, fetcher: RegistrationFetcher) -> None:
        self.chain_reader = chain_reader
        self.fetcher = fetcher

    async def verify(self, global_id: str) -> VerificationResult:
        """
        Verify a global agent ID.

        Never raises for bad input or remote failures; the outcome is
        reported through ``status`` and ``error``.

        Args:
            global_id: ``namespace:chainId:registry#agentId``

        Returns:
            VerificationResult
        """
        try:
            ref = parse_agent_id(global_id)
        except MalformedIdentifierError as e:
            return _failure(VerificationStatus.MALFORMED_IDENTIFIER, f"malformed identifier: {e.message}")

        found: dict[str, str] = {}
        try:
            return await self._verify_ref(ref, found)
        except Exception as e:
            logger.debug("Unexpected error verifying %s", ref, exc_info=True)
            # Past the chain reads, the failure belongs to the registration step.
            status = (
                VerificationStatus.REGISTRATION_FETCH_FAILED
                if "agent_uri" in found
                else VerificationStatus.CHAIN_UNREACHABLE
            )
            return _failure(
                status,
                f"unexpected error: {type(e).__name__}: {e}",
                ref=ref,
                owner=found.get("owner"),
                agent_uri=found.get("agent_uri"),
            )

    async def _verify_ref(self, ref: AgentRef, found: dict[str, str]) -> VerificationResult:
        owner: str | None = None
        try:
            owner = await self.chain_reader.owner_of(ref.chain_id, ref.registry, ref.agent_id)
            found["owner"] = owner
            agent_uri = await self.chain_reader.token_uri(ref.chain_id, ref.registry, ref.agent_id)
            found["agent_uri"] = agent_uri
        except ChainUnreachableError as e:
            logger.debug("Chain lookup failed for %s: %s", ref, e)
            return _failure(VerificationStatus.CHAIN_UNREACHABLE, str(e), ref=ref, owner=owner)

        try:
            registration = await self.fetch_registration(agent_uri)
        except RegistrationFetchError as e:
            return _failure(
                VerificationStatus.REGISTRATION_FETCH_FAILED,
                str(e),
                ref=ref,
                owner=owner,
                agent_uri=agent_uri,
            )
        except InvalidRegistrationError as e:
            return _failure(
                VerificationStatus.INVALID_REGISTRATION,
                str(e),
                ref=ref,
                owner=owner,
                agent_uri=agent_uri,
            )

        if not check_back_reference(registration, ref):
            return VerificationResult(
                valid=False,
                owner=owner,
                payment_wallet=None,
                registration=registration,
                status=VerificationStatus.BACK_REFERENCE_MISMATCH,
                error=(
                    f"registration file lists a different agent ID for {ref.registry_id}"
                ),
                ref=ref,
                agent_uri=agent_uri,
            )

        return VerificationResult(
            valid=True,
            owner=owner,
            payment_wallet=registration.agent_wallet,
            registration=registration,
            status=VerificationStatus.VERIFIED,
            ref=ref,
            agent_uri=agent_uri,
        )

    async def fetch_registration(self, uri: str) -> RegistrationFile:
        """
        Fetch and parse the registration file at ``uri``.

        Raises:
            RegistrationFetchError: If the file cannot be retrieved
            InvalidRegistrationError: If the file is not a valid registration
        """
        content = await self.fetcher.fetch(uri)
        return parse_registration(content)

    async def get_mcp_endpoint(self, global_id: str) -> str | None:
        """MCP endpoint of a verified agent, or None."""
        result = await self.verify(global_id)
        if not result.valid or result.registration is None:
            return None
        return get_mcp_endpoint(result.registration)

    async def get_a2a_endpoint(self, global_id: str) -> str | None:
        """A2A endpoint of a verified agent, or None."""
        result = await self.verify(global_id)
        if not result.valid or result.registration is None:
            return None
        return get_a2a_endpoint(result.registration)

    async def get_agent_count(
        self,
        wallet: str,
        chain_id: int,
        registry: str = IDENTITY_REGISTRY_ADDRESS,
    ) -> int:
        """
        Number of agent identities ``wallet`` holds on one chain.

        Raises:
            MalformedIdentifierError: If ``wallet`` is not an address
            ChainUnreachableError: If the chain cannot be queried
        """
        if not is_address(wallet):
            raise MalformedIdentifierError(f"invalid wallet address {wallet!r}")
        return await self.chain_reader.balance_of(chain_id, registry, wallet)


def _failure(
    status: VerificationStatus,
    error: str,
    ref: AgentRef | None = None,
    owner: str | None = None,
    agent_uri: str | None = None,
) -> VerificationResult:
    return VerificationResult(
        valid=False,
        owner=owner,
        payment_wallet=None,
        registration=None,
        status=status,
        error=error or status.value,
        ref=ref,
        agent_uri=agent_uri,
    )


__all__ = ["IdentityVerifier"]
