"""
Tests for server-side x402 gating helpers.
"""

import base64
import json

import pytest

from agentstack.constants import IDENTITY_REGISTRY_ADDRESS
from agentstack.exceptions import ConfigurationError
from agentstack.gating import (
    IDENTITY_RESOURCE_URI,
    USDC_BASE,
    PaymentGate,
    PaymentGateConfig,
    identity_resource,
)
from agentstack.globalid import parse_agent_id
from agentstack.probe import decode_payment_challenge
from agentstack.testing import TEST_WALLET
from agentstack.types import RegistrationFile

RESOURCE = "mcp://tools/get-price"


@pytest.fixture
def gate() -> PaymentGate:
    return PaymentGate(
        PaymentGateConfig(pay_to=TEST_WALLET, amount="1000", description="$0.001 per call")
    )


def test_free_tools(gate: PaymentGate) -> None:
    assert not gate.requires_payment("ping")
    assert gate.requires_payment("get-price")


def test_custom_free_tools() -> None:
    gate = PaymentGate(PaymentGateConfig(pay_to=TEST_WALLET, amount="1", free_tools=("ping", "help")))

    assert not gate.requires_payment("help")


def test_challenge_body(gate: PaymentGate) -> None:
    challenge = gate.challenge(RESOURCE)

    assert challenge["x402Version"] == 1
    assert challenge["error"] == "payment required"
    (accepted,) = challenge["accepts"]
    assert accepted == {
        "scheme": "exact",
        "network": "eip155:8453",
        "maxAmountRequired": "1000",
        "resource": RESOURCE,
        "description": "$0.001 per call",
        "mimeType": "application/json",
        "payTo": TEST_WALLET,
        "maxTimeoutSeconds": 60,
        "asset": USDC_BASE,
    }


def test_challenge_header_is_base64_json(gate: PaymentGate) -> None:
    header = gate.challenge_header(RESOURCE)

    assert json.loads(base64.b64decode(header)) == gate.challenge(RESOURCE)


def test_challenge_header_decodes_on_the_probing_side(gate: PaymentGate) -> None:
    (name, value), = gate.challenge_headers(RESOURCE).items()

    requirements = decode_payment_challenge(value)

    assert name == "X-PAYMENT-REQUIRED"
    assert requirements.amount == "1000"
    assert requirements.pay_to == TEST_WALLET
    assert requirements.asset == USDC_BASE
    assert requirements.network == "eip155:8453"
    assert requirements.scheme == "exact"


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"X-PAYMENT": "eyJ4NDAyVmVyc2lvbiI6MX0="}, True),
        ({"x-payment": "abc"}, True),
        ({"X-PAYMENT": ""}, False),
        ({"Authorization": "Bearer abc"}, False),
        ({}, False),
    ],
)
def test_has_payment(gate: PaymentGate, headers: dict[str, str], expected: bool) -> None:
    assert gate.has_payment(headers) is expected


def test_status_code(gate: PaymentGate) -> None:
    assert gate.status_code == 402


@pytest.mark.parametrize(
    "pay_to,amount",
    [
        ("0x1234", "1000"),
        ("", "1000"),
        (TEST_WALLET, "-1"),
        (TEST_WALLET, "0.5"),
        (TEST_WALLET, ""),
    ],
)
def test_config_validation(pay_to: str, amount: str) -> None:
    with pytest.raises(ConfigurationError):
        PaymentGateConfig(pay_to=pay_to, amount=amount)


class TestIdentityResource:
    """The agent://identity resource a paid server exposes about itself."""

    def test_without_registration(self) -> None:
        ref = parse_agent_id(f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}#2376")

        body = identity_resource(ref)

        assert body == {
            "uri": IDENTITY_RESOURCE_URI,
            "globalId": f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}#2376",
            "chainId": 8453,
            "agentRegistry": f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}",
            "agentId": 2376,
        }

    def test_with_registration(self, sample_registration: RegistrationFile) -> None:
        ref = parse_agent_id(f"eip155:8453:{IDENTITY_REGISTRY_ADDRESS}#1")

        body = identity_resource(ref, sample_registration)

        assert body["registration"]["name"] == "Sample Agent"
        json.dumps(body)
