"""ERC-8004 registry constants and the built-in chain table."""

from dataclasses import dataclass

# Identity registry, deployed at the same address on every supported chain
IDENTITY_REGISTRY_ADDRESS = "0x8004A169FB4a3325136EB29fA0ceB6D2e539a432"

REGISTRATION_TYPE = "https://eips.ethereum.org/EIPS/eip-8004#registration-v1"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

EIP155_NAMESPACE = "eip155"

DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"


@dataclass(frozen=True)
class ChainInfo:
    """A chain the scanner knows how to reach."""

    chain_id: int
    name: str
    rpc_url: str


SUPPORTED_CHAINS: dict[int, ChainInfo] = {
    chain.chain_id: chain
    for chain in (
        ChainInfo(1, "Ethereum", "https://eth.llamarpc.com"),
        ChainInfo(10, "Optimism", "https://mainnet.optimism.io"),
        ChainInfo(56, "BNB Chain", "https://bsc-dataseed.bnbchain.org"),
        ChainInfo(100, "Gnosis", "https://rpc.gnosischain.com"),
        ChainInfo(137, "Polygon", "https://polygon-rpc.com"),
        ChainInfo(143, "Monad", "https://rpc.monad.xyz"),
        ChainInfo(2741, "Abstract", "https://api.mainnet.abs.xyz"),
        ChainInfo(5000, "Mantle", "https://rpc.mantle.xyz"),
        ChainInfo(8453, "Base", "https://mainnet.base.org"),
        ChainInfo(42161, "Arbitrum", "https://arb1.arbitrum.io/rpc"),
        ChainInfo(42220, "Celo", "https://forno.celo.org"),
        ChainInfo(43114, "Avalanche", "https://api.avax.network/ext/bc/C/rpc"),
        ChainInfo(59144, "Linea", "https://rpc.linea.build"),
        ChainInfo(534352, "Scroll", "https://rpc.scroll.io"),
        ChainInfo(11155111, "Sepolia", "https://ethereum-sepolia-rpc.publicnode.com"),
        ChainInfo(84532, "Base Sepolia", "https://sepolia.base.org"),
    )
}


def chain_name(chain_id: int) -> str:
    """Human-readable name for a chain ID, falling back to ``chain-<id>``."""
    chain = SUPPORTED_CHAINS.get(chain_id)
    return chain.name if chain else f"chain-{chain_id}"
