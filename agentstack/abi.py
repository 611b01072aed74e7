"""
Calldata and return-data codec for the identity registry.

Only the read-only ERC-721 surface the registry exposes is covered:
``balanceOf``, ``ownerOf``, ``tokenURI`` and the ``Transfer`` event.
"""

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_checksum_address

from agentstack.exceptions import ChainUnreachableError

BALANCE_OF_SELECTOR = keccak(text="balanceOf(address)")[:4]
OWNER_OF_SELECTOR = keccak(text="ownerOf(uint256)")[:4]
TOKEN_URI_SELECTOR = keccak(text="tokenURI(uint256)")[:4]

TRANSFER_TOPIC = "0x" + keccak(text="Transfer(address,address,uint256)").hex()


def encode_balance_of(owner: str) -> str:
    """Calldata for ``balanceOf(owner)``."""
    return _calldata(BALANCE_OF_SELECTOR, ["address"], [to_checksum_address(owner)])


def encode_owner_of(token_id: int) -> str:
    """Calldata for ``ownerOf(tokenId)``."""
    return _calldata(OWNER_OF_SELECTOR, ["uint256"], [token_id])


def encode_token_uri(token_id: int) -> str:
    """Calldata for ``tokenURI(tokenId)``."""
    return _calldata(TOKEN_URI_SELECTOR, ["uint256"], [token_id])


def decode_uint(data: str) -> int:
    """Decode a single ``uint256`` return value."""
    return _decode_single("uint256", data)


def decode_address(data: str) -> str:
    """Decode a single ``address`` return value as a checksum address."""
    return to_checksum_address(_decode_single("address", data))


def decode_string(data: str) -> str:
    """Decode a single ``string`` return value."""
    return _decode_single("string", data)


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte indexed topic."""
    return "0x" + "0" * 24 + address.lower().removeprefix("0x")


def topic_to_int(topic: str) -> int:
    """Read an indexed ``uint256`` topic."""
    return int(topic, 16)


def _calldata(selector: bytes, types: list[str], args: list[object]) -> str:
    return "0x" + (selector + encode(types, args)).hex()


def _decode_single(abi_type: str, data: str) -> object:
    raw = _hex_to_bytes(data)
    if not raw:
        # Calls to a missing contract or a reverting view without reason data
        raise ChainUnreachableError("CALL_REVERTED", "empty return data")
    try:
        (value,) = decode([abi_type], raw)
    except (DecodingError, ValueError) as e:
        raise ChainUnreachableError("DECODE_ERROR", f"cannot decode {abi_type}: {e}") from e
    return value


def _hex_to_bytes(data: str) -> bytes:
    if not isinstance(data, str):
        raise ChainUnreachableError("DECODE_ERROR", "return data must be a hex string")
    try:
        return bytes.fromhex(data.removeprefix("0x"))
    except ValueError as e:
        raise ChainUnreachableError("DECODE_ERROR", f"invalid hex return data: {e}") from e
