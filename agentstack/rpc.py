"""
Chain RPC access for the identity registry.

``ChainReader`` is the read-only contract the verifier and scanner consume.
``JsonRpcChainReader`` implements it over plain Ethereum JSON-RPC with an
httpx async client: one endpoint per chain, one attempt per call, every call
bounded by the client timeout. Retrying is left to callers.
"""

import itertools
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from agentstack import abi
from agentstack.constants import SUPPORTED_CHAINS, ZERO_ADDRESS
from agentstack.exceptions import ChainUnreachableError
from agentstack.logging import log_rpc_call


class ChainReader(ABC):
    """Read-only view of identity registries across chains."""

    @abstractmethod
    def has_chain(self, chain_id: int) -> bool:
        """True if this reader can reach ``chain_id``."""

    @abstractmethod
    def chain_ids(self) -> list[int]:
        """All chain IDs this reader can reach, ascending."""

    @abstractmethod
    async def balance_of(self, chain_id: int, registry: str, owner: str) -> int:
        """Number of agent tokens ``owner`` holds on the registry."""

    @abstractmethod
    async def owner_of(self, chain_id: int, registry: str, agent_id: int) -> str:
        """Current owner of ``agent_id``."""

    @abstractmethod
    async def token_uri(self, chain_id: int, registry: str, agent_id: int) -> str:
        """Registration URI of ``agent_id``."""

    @abstractmethod
    async def minted_to(self, chain_id: int, registry: str, owner: str) -> list[int]:
        """Agent IDs ever minted to ``owner``, in log order."""

    async def close(self) -> None:
        """Release any network resources."""


class JsonRpcChainReader(ChainReader):
    """
    ChainReader backed by Ethereum JSON-RPC endpoints.

    Handles:
    - ``eth_call`` for balanceOf / ownerOf / tokenURI
    - ``eth_getLogs`` for mint Transfer events over the full history
    - Mapping transport, HTTP and JSON-RPC failures to ChainUnreachableError
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        rpc_urls: dict[int, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the reader.

        Args:
            rpc_urls: Chain ID to RPC URL map (default: the built-in chain table)
            timeout: Per-call timeout in seconds
            http_client: Preconfigured httpx client (the reader will not close it)
        """
        if rpc_urls is None:
            rpc_urls = {chain_id: chain.rpc_url for chain_id, chain in SUPPORTED_CHAINS.items()}
        self.rpc_urls = dict(rpc_urls)
        self.timeout = timeout
        self._ids = itertools.count(1)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP client if this reader created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcChainReader":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def has_chain(self, chain_id: int) -> bool:
        return chain_id in self.rpc_urls

    def chain_ids(self) -> list[int]:
        return sorted(self.rpc_urls)

    async def balance_of(self, chain_id: int, registry: str, owner: str) -> int:
        result = await self.eth_call(chain_id, registry, abi.encode_balance_of(owner))
        return self._decode(chain_id, abi.decode_uint, result)

    async def owner_of(self, chain_id: int, registry: str, agent_id: int) -> str:
        result = await self.eth_call(chain_id, registry, abi.encode_owner_of(agent_id))
        return self._decode(chain_id, abi.decode_address, result)

    async def token_uri(self, chain_id: int, registry: str, agent_id: int) -> str:
        result = await self.eth_call(chain_id, registry, abi.encode_token_uri(agent_id))
        return self._decode(chain_id, abi.decode_string, result)

    async def minted_to(self, chain_id: int, registry: str, owner: str) -> list[int]:
        logs = await self.call(
            chain_id,
            "eth_getLogs",
            [
                {
                    "address": registry,
                    "topics": [
                        abi.TRANSFER_TOPIC,
                        abi.address_topic(ZERO_ADDRESS),
                        abi.address_topic(owner),
                    ],
                    "fromBlock": "0x0",
                    "toBlock": "latest",
                }
            ],
        )
        if not isinstance(logs, list):
            raise ChainUnreachableError(
                "DECODE_ERROR", "eth_getLogs returned a non-list result", chain_id
            )

        agent_ids: list[int] = []
        for log in logs:
            topics = log.get("topics") if isinstance(log, dict) else None
            if not topics or len(topics) < 4:
                continue
            try:
                agent_ids.append(abi.topic_to_int(topics[3]))
            except (TypeError, ValueError) as e:
                raise ChainUnreachableError(
                    "DECODE_ERROR", f"malformed Transfer log: {e}", chain_id
                ) from e
        return agent_ids

    async def eth_call(self, chain_id: int, to: str, data: str) -> str:
        """Execute a read-only call against ``latest``."""
        return await self.call(chain_id, "eth_call", [{"to": to, "data": data}, "latest"])

    async def call(self, chain_id: int, method: str, params: list[Any]) -> Any:
        """
        Make one JSON-RPC call.

        Args:
            chain_id: Chain to call
            method: JSON-RPC method name
            params: JSON-RPC params

        Returns:
            The ``result`` member of the response

        Raises:
            ChainUnreachableError: On unknown chain, timeout, transport, HTTP or RPC errors
        """
        url = self.rpc_urls.get(chain_id)
        if url is None:
            raise ChainUnreachableError(
                "UNKNOWN_CHAIN", f"no RPC endpoint configured for chain {chain_id}", chain_id
            )

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        start = time.monotonic()

        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            error = ChainUnreachableError("RPC_TIMEOUT", f"{method} timed out", chain_id)
            log_rpc_call(chain_id, method, url, error=error.message)
            raise error from e
        except httpx.HTTPStatusError as e:
            error = ChainUnreachableError(
                "RPC_HTTP_ERROR", f"HTTP {e.response.status_code} from RPC endpoint", chain_id
            )
            log_rpc_call(chain_id, method, url, error=error.message)
            raise error from e
        except httpx.HTTPError as e:
            error = ChainUnreachableError("RPC_CONNECTION_ERROR", str(e) or type(e).__name__, chain_id)
            log_rpc_call(chain_id, method, url, error=error.message)
            raise error from e
        except ValueError as e:
            raise ChainUnreachableError(
                "DECODE_ERROR", f"RPC endpoint returned invalid JSON: {e}", chain_id
            ) from e

        elapsed_ms = (time.monotonic() - start) * 1000

        if not isinstance(body, dict):
            raise ChainUnreachableError("DECODE_ERROR", "RPC response is not an object", chain_id)

        if body.get("error") is not None:
            raise self._rpc_error(chain_id, method, url, body["error"], elapsed_ms)

        log_rpc_call(chain_id, method, url, elapsed_ms=elapsed_ms)
        return body.get("result")

    def _rpc_error(
        self,
        chain_id: int,
        method: str,
        url: str,
        error: Any,
        elapsed_ms: float,
    ) -> ChainUnreachableError:
        if isinstance(error, dict):
            message = str(error.get("message", error))
            code = error.get("code")
        else:
            message = str(error)
            code = None

        log_rpc_call(chain_id, method, url, elapsed_ms=elapsed_ms, error=message)

        # 3 is the standard code for execution reverted
        if code == 3 or "revert" in message.lower():
            return ChainUnreachableError("CALL_REVERTED", message, chain_id)
        return ChainUnreachableError("RPC_ERROR", message, chain_id)

    @staticmethod
    def _decode(chain_id: int, decoder: Any, data: Any) -> Any:
        try:
            return decoder(data)
        except ChainUnreachableError as e:
            raise ChainUnreachableError(e.code, e.message, chain_id) from e
