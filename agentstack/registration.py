"""
Registration file interpreter.

Turns the text of an ERC-8004 registration file into a RegistrationFile and
resolves the reserved service names (MCP, A2A, web) to endpoints. Unwrapping
data-URI or base64 envelopes is the fetcher's job; this module only sees the
JSON document itself.
"""

import json
from collections.abc import Mapping
from typing import Any

from agentstack.exceptions import InvalidRegistrationError
from agentstack.globalid import is_address
from agentstack.types.identity import AgentRef
from agentstack.types.registration import RegistrationFile, RegistrationRef, Service

MCP_SERVICE = "MCP"
A2A_SERVICE = "A2A"
WEB_SERVICE = "web"


def parse_registration(content: str | bytes | Mapping[str, Any]) -> RegistrationFile:
    """
    Parse and validate a registration file.

    Args:
        content: JSON text, UTF-8 bytes, or an already-decoded JSON object

    Returns:
        The parsed RegistrationFile

    Raises:
        InvalidRegistrationError: If required fields are missing or mistyped
    """
    data = _load_json(content)

    name = _require_str(data, "name")
    description = _require_str(data, "description")

    # Early drafts of the registration format called services "endpoints"
    services_key = "services" if "services" in data or "endpoints" not in data else "endpoints"
    raw_services = data.get(services_key)
    if not isinstance(raw_services, list):
        raise InvalidRegistrationError("'services' must be an array", field="services")
    services = tuple(
        _parse_service(item, index) for index, item in enumerate(raw_services)
    )

    raw_registrations = data.get("registrations", [])
    if not isinstance(raw_registrations, list):
        raise InvalidRegistrationError(
            "'registrations' must be an array", field="registrations"
        )
    registrations = tuple(
        _parse_registration_ref(item, index) for index, item in enumerate(raw_registrations)
    )

    return RegistrationFile(
        type=_optional_str(data, "type") or "",
        name=name,
        description=description,
        image=_optional_str(data, "image"),
        services=services,
        x402_support=_optional_bool(data, "x402Support"),
        active=_optional_bool(data, "active"),
        registrations=registrations,
        agent_wallet=_parse_wallet(data),
        supported_trust=_optional_str_list(data, "supportedTrust"),
    )


def resolve_service(registration: RegistrationFile, name: str) -> Service | None:
    """
    Find a service by name, ignoring case.

    When several services share a name the first one published wins.
    """
    wanted = name.casefold()
    for service in registration.services:
        if service.name.casefold() == wanted:
            return service
    return None


def get_mcp_endpoint(registration: RegistrationFile) -> str | None:
    """Endpoint of the agent's MCP service, if declared."""
    service = resolve_service(registration, MCP_SERVICE)
    return service.endpoint if service else None


def get_a2a_endpoint(registration: RegistrationFile) -> str | None:
    """Endpoint of the agent's A2A service, if declared."""
    service = resolve_service(registration, A2A_SERVICE)
    return service.endpoint if service else None


def get_web_endpoint(registration: RegistrationFile) -> str | None:
    """Endpoint of the agent's website, if declared."""
    service = resolve_service(registration, WEB_SERVICE)
    return service.endpoint if service else None


def check_back_reference(registration: RegistrationFile, ref: AgentRef) -> bool:
    """
    Check that the file does not contradict the reference used to fetch it.

    The queried (registry, agentId) pair is trusted as-is. Other listed
    registrations are informational, except an entry on the same chain and
    registry that names a different agent ID: that file describes some other
    token and fails the check.
    """
    queried = ref.registry_id.lower()
    for listed in registration.registrations:
        if listed.agent_registry.lower() == queried and listed.agent_id != ref.agent_id:
            return False
    return True


def _load_json(content: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(content, Mapping):
        return content

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidRegistrationError(f"registration is not valid UTF-8: {e}") from e

    try:
        data = json.loads(content)
    except (TypeError, ValueError, RecursionError) as e:
        raise InvalidRegistrationError(f"registration is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidRegistrationError("registration must be a JSON object")
    return data


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise InvalidRegistrationError(f"'{key}' must be a string", field=key)
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidRegistrationError(f"'{key}' must be a string", field=key)
    return value


def _optional_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise InvalidRegistrationError(f"'{key}' must be a boolean", field=key)
    return value


def _optional_str_list(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidRegistrationError(f"'{key}' must be an array of strings", field=key)
    return tuple(value)


def _parse_service(item: Any, index: int) -> Service:
    field = f"services[{index}]"
    if not isinstance(item, dict):
        raise InvalidRegistrationError(f"{field} must be an object", field=field)

    name = item.get("name")
    endpoint = item.get("endpoint")
    if not isinstance(name, str) or not isinstance(endpoint, str):
        raise InvalidRegistrationError(
            f"{field} needs string 'name' and 'endpoint'", field=field
        )

    return Service(
        name=name,
        endpoint=endpoint,
        version=_optional_str(item, "version"),
        skills=_optional_str_list(item, "skills"),
        domains=_optional_str_list(item, "domains"),
    )


def _parse_registration_ref(item: Any, index: int) -> RegistrationRef:
    field = f"registrations[{index}]"
    if not isinstance(item, dict):
        raise InvalidRegistrationError(f"{field} must be an object", field=field)

    agent_id = item.get("agentId")
    if isinstance(agent_id, str) and agent_id.isascii() and agent_id.isdigit() and len(agent_id) <= 78:
        agent_id = int(agent_id)
    if isinstance(agent_id, bool) or not isinstance(agent_id, int) or agent_id < 0:
        raise InvalidRegistrationError(
            f"{field}.agentId must be a non-negative integer", field=field
        )

    agent_registry = item.get("agentRegistry")
    if not isinstance(agent_registry, str):
        raise InvalidRegistrationError(
            f"{field}.agentRegistry must be a string", field=field
        )

    return RegistrationRef(agent_id=agent_id, agent_registry=agent_registry)


def _parse_wallet(data: Mapping[str, Any]) -> str | None:
    for key in ("agentWallet", "paymentWallet"):
        value = data.get(key)
        if value is None:
            continue
        if not is_address(value):
            raise InvalidRegistrationError(f"'{key}' must be an address", field=key)
        return value
    return None
