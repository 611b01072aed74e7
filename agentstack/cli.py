"""
agent-id command line tool.

Usage:
    agent-id [OPTIONS] COMMAND [ARGS]...

Examples:
    agent-id verify "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376"
    agent-id lookup 0x1be93C700dDC596D701E8F2106B8F9166C625Adb --chain 8453
    agent-id probe "eip155:8453:0x8004A169FB4a3325136EB29fA0ceB6D2e539a432#2376" --json
    agent-id chains
"""

import json
import logging
from typing import Any

import click

from agentstack import __version__
from agentstack.client import AgentStackClient
from agentstack.constants import SUPPORTED_CHAINS
from agentstack.exceptions import ConfigurationError, MalformedIdentifierError
from agentstack.globalid import parse_agent_id
from agentstack.logging import configure_logging
from agentstack.multichain import ScanOptions


def _client(ctx: click.Context) -> AgentStackClient:
    if ctx.obj is None:
        try:
            ctx.obj = AgentStackClient.from_env()
        except ConfigurationError as e:
            raise click.ClickException(e.message) from e
        ctx.call_on_close(ctx.obj.close)
    return ctx.obj


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__, prog_name="agent-id")
@click.option("-v", "--verbose", is_flag=True, help="Log RPC and HTTP traffic to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """agent-id - verify and inspect ERC-8004 agent identities."""
    if verbose:
        configure_logging(level=logging.DEBUG)


@cli.command()
@click.argument("global_id")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def verify(ctx: click.Context, global_id: str, as_json: bool) -> None:
    """Verify an agent's on-chain identity."""
    if as_json:
        result = _client(ctx).verify(global_id)
        _echo_json(result.to_dict())
        ctx.exit(0 if result.valid else 1)

    try:
        ref = parse_agent_id(global_id)
    except MalformedIdentifierError as e:
        raise click.ClickException(e.message) from e

    result = _client(ctx).verify(global_id)

    click.echo(f"Verifying: {global_id}")
    click.echo(f"  Chain:    {ref.chain_id}")
    click.echo(f"  Registry: {ref.registry}")
    click.echo(f"  Agent ID: {ref.agent_id}")

    if not result.valid:
        click.secho(f"FAILED: {result.error}", fg="red", err=True)
        if result.owner:
            click.echo(f"  Owner:    {result.owner}")
        ctx.exit(1)

    click.secho("Verified", fg="green")
    click.echo(f"  Owner:          {result.owner}")
    click.echo(f"  Payment wallet: {result.payment_wallet or '(defaults to owner)'}")

    registration = result.registration
    if registration is not None:
        click.echo(f"  Name:           {registration.name}")
        click.echo(f"  Active:         {registration.active}")
        click.echo(f"  x402 payments:  {registration.x402_support}")
        if registration.services:
            click.echo("  Services:")
            for service in registration.services:
                click.echo(f"    - {service.name}: {service.endpoint}")


@cli.command()
@click.argument("wallet")
@click.option("--chain", "chains", type=int, multiple=True, help="Chain ID to scan (repeatable)")
@click.option("--fetch-registration", is_flag=True, help="Fetch each agent's registration file")
@click.option("--timeout", type=float, default=15.0, show_default=True, help="Seconds per chain")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def lookup(
    ctx: click.Context,
    wallet: str,
    chains: tuple[int, ...],
    fetch_registration: bool,
    timeout: float,
    as_json: bool,
) -> None:
    """Find all agent identities a wallet owns."""
    options = ScanOptions(fetch_registration=fetch_registration, timeout_per_chain=timeout)
    try:
        rows = _client(ctx).find_all_registrations(
            wallet, chain_ids=list(chains) or None, options=options
        )
    except MalformedIdentifierError as e:
        raise click.ClickException(e.message) from e

    if as_json:
        _echo_json([row.to_dict() for row in rows])
        return

    if not rows:
        click.echo("No registrations found.")
        return

    click.echo(f"Found {len(rows)} registration(s):")
    for row in rows:
        click.echo(f"  {row.chain_name:<14} #{row.agent_id:<6} {row.global_id}")


@cli.command()
@click.argument("global_id")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def probe(ctx: click.Context, global_id: str, as_json: bool) -> None:
    """Discover what an agent offers before connecting."""
    info = _client(ctx).probe(global_id)

    if as_json:
        _echo_json(info.to_dict())
        ctx.exit(0 if info.verified else 1)

    if not info.verified:
        click.secho(f"FAILED: {info.error}", fg="red", err=True)
        ctx.exit(1)

    click.secho(f"Verified: {info.global_id}", fg="green")
    click.echo(f"  Owner:    {info.owner}")
    click.echo(f"  Active:   {info.active}")
    click.echo(f"  MCP:      {info.endpoints.mcp or '-'}")
    click.echo(f"  A2A:      {info.endpoints.a2a or '-'}")
    click.echo(f"  Web:      {info.endpoints.web or '-'}")
    click.echo(f"  Payments: {'x402' if info.accepts_payment else 'none'}")

    requirements = info.payment_requirements
    if requirements is not None:
        click.echo(f"  Price:    {requirements.amount} on {requirements.network}")
        click.echo(f"  Pay to:   {requirements.pay_to}")
    elif info.accepts_payment:
        click.echo(f"  Price:    unknown ({info.payment_probe.value})")


@cli.command()
def chains() -> None:
    """List supported chains."""
    for chain_id in sorted(SUPPORTED_CHAINS):
        click.echo(f"  {SUPPORTED_CHAINS[chain_id].name:<15} chain {chain_id}")
    click.echo(f"Total: {len(SUPPORTED_CHAINS)} chains")


def main() -> None:
    cli(prog_name="agent-id")


if __name__ == "__main__":
    main()
