"""
Tests for multi-chain identity discovery.
"""

import asyncio
import itertools

import httpx
import pytest

from agentstack.constants import IDENTITY_REGISTRY_ADDRESS
from agentstack.exceptions import (
    ChainUnreachableError,
    MalformedIdentifierError,
    RegistrationFetchError,
)
from agentstack.multichain import MultichainScanner, ScanOptions
from agentstack.testing import (
    TEST_OTHER_WALLET,
    TEST_WALLET,
    MockChainReader,
    MockRegistrationFetcher,
    create_registration_file,
)
from agentstack.transport import HTTPRegistrationFetcher


def scan(scanner: MultichainScanner, *args, **kwargs):
    return asyncio.run(scanner.scan(*args, **kwargs))


def test_only_chains_with_a_balance_contribute(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    """A wallet with nothing on chain 1 and one token on Base yields one Base row."""
    mock_chain.mint(8453, 7, TEST_WALLET, "https://agent.example/7.json")

    rows = scan(scanner, TEST_WALLET, chain_ids=[1, 8453])

    assert len(rows) == 1
    row = rows[0]
    assert row.chain_id == 8453
    assert row.chain_name == "Base"
    assert row.agent_id == 7
    assert row.owner == TEST_WALLET
    assert row.agent_uri == "https://agent.example/7.json"
    assert row.registration is None
    assert row.global_id == f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}#7"
    assert [call.args[0] for call in mock_chain.get_calls("minted_to")] == [8453]


def test_rows_are_sorted_by_chain_then_agent(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 9, TEST_WALLET, "u9")
    mock_chain.mint(8453, 3, TEST_WALLET, "u3")
    mock_chain.mint(1, 5, TEST_WALLET, "u5")

    rows = scan(scanner, TEST_WALLET)

    assert [(row.chain_id, row.agent_id) for row in rows] == [(1, 5), (8453, 3), (8453, 9)]


@pytest.mark.parametrize("delays", list(itertools.permutations([0.0, 0.02, 0.04])))
def test_order_does_not_depend_on_completion_timing(delays: tuple[float, ...]) -> None:
    chain = MockChainReader(chain_ids=(1, 10, 8453))
    for chain_id, delay in zip((1, 10, 8453), delays):
        chain.mint(chain_id, chain_id, TEST_WALLET, f"uri-{chain_id}")
        chain.configure_delay(chain_id, delay)
    scanner = MultichainScanner(chain)

    rows = scan(scanner, TEST_WALLET)

    assert [row.chain_id for row in rows] == [1, 10, 8453]


def test_transferred_tokens_are_not_reported(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    """The original mint recipient loses the row once the token moves."""
    mock_chain.mint(8453, 1, TEST_WALLET, "u1")
    mock_chain.mint(8453, 2, TEST_WALLET, "u2")
    mock_chain.transfer(8453, 1, TEST_OTHER_WALLET)

    rows = scan(scanner, TEST_WALLET, chain_ids=[8453])

    assert [row.agent_id for row in rows] == [2]
    assert scan(scanner, TEST_OTHER_WALLET, chain_ids=[8453]) == []


def test_owner_comparison_ignores_case(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET.lower(), "u1")

    rows = scan(scanner, TEST_WALLET, chain_ids=[8453])

    assert [row.agent_id for row in rows] == [1]


def test_duplicate_mint_events_yield_one_row(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 4, TEST_WALLET, "u4")
    mock_chain.mint(8453, 4, TEST_WALLET, "u4")

    rows = scan(scanner, TEST_WALLET, chain_ids=[8453])

    assert [row.agent_id for row in rows] == [4]
    assert mock_chain.call_count("owner_of") == 1


def test_slow_chain_times_out_without_failing_the_scan(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(1, 1, TEST_WALLET, "u1")
    mock_chain.mint(8453, 2, TEST_WALLET, "u2")
    mock_chain.configure_delay(1, 5.0, method="balance_of")

    rows = scan(
        scanner,
        TEST_WALLET,
        chain_ids=[1, 8453],
        options=ScanOptions(timeout_per_chain=0.05),
    )

    assert [row.chain_id for row in rows] == [8453]
    assert not any(call.args[0] == 1 for call in mock_chain.get_calls("minted_to"))


def test_failing_chain_contributes_nothing(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(1, 1, TEST_WALLET, "u1")
    mock_chain.mint(8453, 2, TEST_WALLET, "u2")
    mock_chain.configure_error(1, ChainUnreachableError("RPC_CONNECTION_ERROR", "refused", 1))
    mock_chain.configure_error(8453, RuntimeError("unexpected"), method="token_uri")

    assert scan(scanner, TEST_WALLET) == []


def test_reverting_owner_of_skips_only_that_token(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "u1")
    mock_chain.mint(8453, 2, TEST_WALLET, "u2")

    original = mock_chain.owner_of

    async def owner_of(chain_id: int, registry: str, agent_id: int) -> str:
        if agent_id == 1:
            raise ChainUnreachableError("CALL_REVERTED", "ERC721NonexistentToken(1)", chain_id)
        return await original(chain_id, registry, agent_id)

    mock_chain.owner_of = owner_of  # type: ignore[method-assign]

    rows = scan(scanner, TEST_WALLET, chain_ids=[8453])

    assert [row.agent_id for row in rows] == [2]


def test_deadline_returns_settled_chains(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(1, 1, TEST_WALLET, "u1")
    mock_chain.mint(8453, 2, TEST_WALLET, "u2")
    mock_chain.configure_delay(1, 5.0, method="minted_to")

    rows = scan(scanner, TEST_WALLET, options=ScanOptions(deadline=0.2))

    assert [row.chain_id for row in rows] == [8453]


def test_fetch_registration(
    mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "https://agent.example/1.json")
    mock_chain.mint(8453, 2, TEST_WALLET, "https://agent.example/2.json")
    mock_fetcher.add("https://agent.example/1.json", create_registration_file(name="One"))
    scanner = MultichainScanner(mock_chain, mock_fetcher)

    rows = scan(scanner, TEST_WALLET, options=ScanOptions(fetch_registration=True))

    assert rows[0].registration is not None
    assert rows[0].registration.name == "One"
    assert rows[1].registration is None
    assert mock_fetcher.call_count("fetch") == 2


def test_registration_is_not_fetched_by_default(
    scanner: MultichainScanner, mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "u1")

    scan(scanner, TEST_WALLET)

    assert not mock_fetcher.was_called("fetch")


def test_unknown_chains_are_skipped(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "u1")

    rows = scan(scanner, TEST_WALLET, chain_ids=[8453, 424242])

    assert [row.chain_id for row in rows] == [8453]
    assert not any(call.args[0] == 424242 for call in mock_chain.get_calls())


def test_empty_chain_list(scanner: MultichainScanner) -> None:
    assert scan(scanner, TEST_WALLET, chain_ids=[]) == []


@pytest.mark.parametrize("wallet", ["", "0x1234", "not-a-wallet", None])
def test_malformed_wallet_raises(scanner: MultichainScanner, wallet: object) -> None:
    with pytest.raises(MalformedIdentifierError):
        scan(scanner, wallet)


def test_custom_registry(scanner: MultichainScanner, mock_chain: MockChainReader) -> None:
    registry = "0x" + "ab" * 20
    mock_chain.mint(8453, 1, TEST_WALLET, "u1", registry=registry)

    default_rows = scan(scanner, TEST_WALLET)
    custom_rows = scan(scanner, TEST_WALLET, options=ScanOptions(registry=registry))

    assert default_rows == []
    assert [row.global_id for row in custom_rows] == [f"eip155:8453:{registry}#1"]


def test_external_cancellation_propagates(
    scanner: MultichainScanner, mock_chain: MockChainReader
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "u1")
    mock_chain.configure_delay(8453, 10.0)

    async def run() -> None:
        task = asyncio.create_task(scanner.scan(TEST_WALLET))
        await asyncio.sleep(0.01)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(run())


@pytest.mark.parametrize(
    "error", [RegistrationFetchError("HTTP 500"), RuntimeError("boom")]
)
def test_fetch_failure_drops_only_the_registration(
    mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher, error: Exception
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "https://agent.example/1.json")
    mock_fetcher.configure_error("https://agent.example/1.json", error)
    scanner = MultichainScanner(mock_chain, mock_fetcher)

    (row,) = scan(scanner, TEST_WALLET, [8453], ScanOptions(fetch_registration=True))

    assert row.agent_id == 1
    assert row.registration is None


def test_deeply_nested_registration_keeps_the_row(
    mock_chain: MockChainReader, mock_fetcher: MockRegistrationFetcher
) -> None:
    mock_chain.mint(8453, 1, TEST_WALLET, "https://agent.example/1.json")
    mock_fetcher.add("https://agent.example/1.json", "[" * 100000)
    scanner = MultichainScanner(mock_chain, mock_fetcher)

    (row,) = scan(scanner, TEST_WALLET, [8453], ScanOptions(fetch_registration=True))

    assert row.registration is None


def test_malformed_token_uri_keeps_the_row(mock_chain: MockChainReader) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    scanner = MultichainScanner(mock_chain, HTTPRegistrationFetcher(http_client=client))
    mock_chain.mint(8453, 1, TEST_WALLET, "http://[::1/agent.json")

    (row,) = scan(scanner, TEST_WALLET, [8453], ScanOptions(fetch_registration=True))

    assert row.agent_uri == "http://[::1/agent.json"
    assert row.registration is None
