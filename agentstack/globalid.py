"""
Global agent ID codec.

A global agent ID names one agent identity across chains:

    eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376
    <namespace>:<chainId>:<registry>#<agentId>

Parsing is strict so that formatting a parsed ID reproduces the input byte
for byte: integers must be in canonical decimal form and the registry keeps
its original letter case.
"""

import re

from agentstack.exceptions import MalformedIdentifierError
from agentstack.types.identity import AgentRef

_NAMESPACE = r"[-a-z0-9]{3,8}"
# uint256 has at most 78 decimal digits
_UINT = r"0|[1-9][0-9]{0,77}"
_ADDRESS = r"0x[0-9a-fA-F]{40}"

_GLOBAL_ID_RE = re.compile(
    rf"(?P<namespace>{_NAMESPACE}):(?P<chain_id>{_UINT}):"
    rf"(?P<registry>[^:#]+)#(?P<agent_id>{_UINT})"
)
_ADDRESS_RE = re.compile(_ADDRESS)
_NAMESPACE_RE = re.compile(_NAMESPACE)


def is_address(value: object) -> bool:
    """True if ``value`` is a 0x-prefixed 20-byte hex address (any case)."""
    return isinstance(value, str) and _ADDRESS_RE.fullmatch(value) is not None


def parse_agent_id(global_id: str) -> AgentRef:
    """
    Parse a global agent ID.

    Args:
        global_id: String of the form ``namespace:chainId:registry#agentId``

    Returns:
        The structured AgentRef

    Raises:
        MalformedIdentifierError: If the string is not a well-formed global ID
    """
    if not isinstance(global_id, str):
        raise MalformedIdentifierError(
            f"global agent ID must be a string, got {type(global_id).__name__}"
        )

    match = _GLOBAL_ID_RE.fullmatch(global_id)
    if match is None:
        raise MalformedIdentifierError(
            f"expected 'namespace:chainId:registry#agentId', got {global_id!r}"
        )

    registry = match.group("registry")
    if not is_address(registry):
        raise MalformedIdentifierError(f"invalid registry address {registry!r}")

    return AgentRef(
        namespace=match.group("namespace"),
        chain_id=int(match.group("chain_id")),
        registry=registry,
        agent_id=int(match.group("agent_id")),
    )


def format_agent_id(ref: AgentRef) -> str:
    """Format an AgentRef as its global agent ID string."""
    return ref.global_id


def is_valid_agent_id(global_id: object) -> bool:
    """True if ``global_id`` parses as a global agent ID."""
    try:
        parse_agent_id(global_id)  # type: ignore[arg-type]
    except MalformedIdentifierError:
        return False
    return True


def make_agent_ref(
    chain_id: int,
    registry: str,
    agent_id: int,
    namespace: str = "eip155",
) -> AgentRef:
    """
    Build an AgentRef from its parts, validating each one.

    Raises:
        MalformedIdentifierError: If any part is out of range or malformed
    """
    if not _NAMESPACE_RE.fullmatch(namespace):
        raise MalformedIdentifierError(f"invalid namespace {namespace!r}")
    for label, value in (("chain ID", chain_id), ("agent ID", agent_id)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedIdentifierError(f"{label} must be a non-negative integer")
    if not is_address(registry):
        raise MalformedIdentifierError(f"invalid registry address {registry!r}")
    return AgentRef(
        namespace=namespace, chain_id=chain_id, registry=registry, agent_id=agent_id
    )
