"""
Capability probe.

Describes what an agent offers before anyone connects to it: verified
identity, declared endpoints and services, and, when the agent advertises
x402 support, the payment requirements its MCP endpoint answers with.
"""

import base64
import binascii
import json
import time
from typing import Any

import httpx

from agentstack.exceptions import PaymentChallengeError
from agentstack.logging import get_logger, log_http_request, log_http_response
from agentstack.registration import get_a2a_endpoint, get_mcp_endpoint, get_web_endpoint
from agentstack.types.probe import AgentProbeResult, PaymentProbeStatus, PaymentRequirements
from agentstack.verify import IdentityVerifier

logger = get_logger()

PAYMENT_REQUIRED_STATUS = 402
PAYMENT_REQUIRED_HEADER = "X-PAYMENT-REQUIRED"
PAYMENT_REQUIRED_HEADER_ALIASES = (PAYMENT_REQUIRED_HEADER, "PAYMENT-REQUIRED")

PING_REQUEST = {"jsonrpc": "2.0", "method": "ping", "id": 1}


def decode_payment_challenge(header: str) -> PaymentRequirements:
    """
    Decode an x402 payment challenge header.

    The header is base64 (standard or URL-safe, padding optional) over a JSON
    document. The first entry of its ``accepts`` array is used; a document
    without ``accepts`` is read as a single requirements object.

    Args:
        header: Raw header value

    Returns:
        PaymentRequirements

    Raises:
        PaymentChallengeError: If the header cannot be decoded
    """
    if not isinstance(header, str) or not header.strip():
        raise PaymentChallengeError("empty payment challenge")

    data = _decode_base64_json(header.strip())

    if isinstance(data, list):
        data = {"accepts": data}
    if not isinstance(data, dict):
        raise PaymentChallengeError("payment challenge must be a JSON object")

    accepts = data.get("accepts")
    if isinstance(accepts, list):
        if not accepts:
            raise PaymentChallengeError("payment challenge lists no accepted payments")
        first = accepts[0]
    else:
        first = data
    if not isinstance(first, dict):
        raise PaymentChallengeError("payment requirements must be a JSON object")

    amount = first.get("maxAmountRequired", first.get("amount"))
    requirements = PaymentRequirements(
        amount=_as_text(amount),
        network=_as_text(first.get("network")),
        pay_to=_as_text(first.get("payTo")),
        asset=_as_text(first.get("asset")),
        scheme=_as_text(first.get("scheme")),
    )
    if not requirements.to_dict():
        raise PaymentChallengeError("payment challenge carries no requirements")
    return requirements


class CapabilityProbe:
    """
    Probes agents for their capabilities.

    The payment probe is one POST of a JSON-RPC ``ping`` to the MCP
    endpoint; a ``402`` answer carries the requirements. Any failure there
    leaves ``payment_requirements`` unset and never fails the probe.

    Example:
        ```python
        prober = CapabilityProbe(verifier)
        info = await prober.probe("eip155:8453:0x8004...#2376")
        print(info.endpoints.mcp, info.accepts_payment, info.payment_requirements)
        ```
    """

    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        verifier: IdentityVerifier,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the probe.

        Args:
            verifier: Verifier used for the identity step
            http_client: Preconfigured httpx client (the probe will not close it)
            timeout: Timeout in seconds for the payment probe request
        """
        self.verifier = verifier
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=False)

    async def close(self) -> None:
        """Close the HTTP client if this probe created it."""
        if self._owns_client:
            await self._client.aclose()

    async def probe(self, global_id: str) -> AgentProbeResult:
        """
        Probe one agent.

        Never raises; failures are reported through ``error`` and
        ``payment_probe``.
        """
        result = AgentProbeResult(global_id=global_id if isinstance(global_id, str) else str(global_id))

        verification = await self.verifier.verify(global_id)
        if not verification.valid or verification.registration is None:
            result.error = verification.error or "identity verification failed"
            return result

        registration = verification.registration
        result.verified = True
        result.owner = verification.owner
        result.payment_wallet = verification.payment_wallet
        result.registration = registration
        result.active = registration.active
        result.accepts_payment = registration.x402_support
        result.services = registration.services
        result.registrations = registration.registrations
        result.endpoints.mcp = get_mcp_endpoint(registration)
        result.endpoints.a2a = get_a2a_endpoint(registration)
        result.endpoints.web = get_web_endpoint(registration)

        if result.endpoints.mcp and result.accepts_payment:
            status, requirements = await self.probe_payment(result.endpoints.mcp)
            result.payment_probe = status
            result.payment_requirements = requirements

        return result

    async def probe_payment(
        self, endpoint: str
    ) -> tuple[PaymentProbeStatus, PaymentRequirements | None]:
        """
        Ask an MCP endpoint for its payment challenge.

        Returns:
            The probe status and, when discovered, the requirements
        """
        log_http_request("POST", endpoint, body=PING_REQUEST)
        start = time.monotonic()
        try:
            response = await self._client.post(
                endpoint,
                json=PING_REQUEST,
                timeout=self.timeout,
                follow_redirects=False,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Payment probe of %s failed: %s", endpoint, e)
            return PaymentProbeStatus.UNREACHABLE, None
        log_http_response(response.status_code, endpoint, (time.monotonic() - start) * 1000)

        if response.status_code != PAYMENT_REQUIRED_STATUS:
            return PaymentProbeStatus.NO_CHALLENGE, None

        header = _challenge_header(response.headers)
        if header is None:
            return PaymentProbeStatus.UNDECODABLE, None

        try:
            return PaymentProbeStatus.DISCOVERED, decode_payment_challenge(header)
        except PaymentChallengeError as e:
            logger.debug("Undecodable payment challenge from %s: %s", endpoint, e)
            return PaymentProbeStatus.UNDECODABLE, None


def _challenge_header(headers: httpx.Headers) -> str | None:
    for name in PAYMENT_REQUIRED_HEADER_ALIASES:
        value = headers.get(name)
        if value:
            return value
    return None


def _decode_base64_json(value: str) -> Any:
    padded = value + "=" * (-len(value) % 4)
    try:
        if "-" in padded or "_" in padded:
            raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        else:
            raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PaymentChallengeError(f"payment challenge is not base64: {e}") from e

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise PaymentChallengeError(f"payment challenge is not JSON: {e}") from e


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)
