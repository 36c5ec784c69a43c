#!/usr/bin/env python3
"""
Treasury DAO CLI

Deploys a governance token, an in-memory ledger and a governor from a TOML
file, then replays the file's scripted scenario.

Usage:
    treasury-dao show-config <config.toml>
    treasury-dao simulate <config.toml> [--log-level LEVEL] [--json]
"""

import json
from typing import Any, Dict, List, Tuple

import click

from treasury_dao import __version__
from treasury_dao.config import DAOConfig, ScenarioStep
from treasury_dao.exceptions import ConfigurationError
from treasury_dao.governance import ProposalState
from treasury_dao.ledger.host import CallResult, ContractHost
from treasury_dao.logger import set_log_level
from treasury_dao.tokens import GovernanceToken, TokenError


def load_validated(config_file: str) -> DAOConfig:
    try:
        cfg = DAOConfig.from_file(config_file)
        cfg.validate()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    return cfg


def deploy_from_config(cfg: DAOConfig) -> ContractHost:
    """Deploy the token and a hosted governor described by *cfg*."""
    try:
        token = GovernanceToken(
            cfg.token.initial_supply,
            name=cfg.token.name,
            symbol=cfg.token.symbol,
            decimals=cfg.token.decimals,
            deployer=cfg.token.deployer,
            allocations=cfg.token.allocations or None,
        )
    except TokenError as e:
        raise click.ClickException(f"Failed to deploy token: {e}")

    return ContractHost.deploy(
        token,
        cfg.governor.quorum_percent,
        treasury_balance=cfg.treasury.balance,
        contract_address=cfg.governor.contract_address,
        start_time=cfg.governor.start_time,
    )


def run_step(host: ContractHost, step: ScenarioStep) -> Tuple[str, CallResult]:
    """Apply one scenario step; returns a description and its result."""
    if step.action == "propose":
        desc = (
            f"{step.caller} proposes {step.amount} → {step.recipient} "
            f"for {step.duration_minutes}m"
        )
        return desc, host.propose(step.caller, step.recipient, step.amount, step.duration_minutes)
    if step.action == "vote":
        desc = f"{step.caller} votes {step.choice.upper()} on #{step.proposal_id}"
        return desc, host.vote(step.caller, step.proposal_id, step.choice)
    if step.action == "execute":
        desc = f"{step.caller} executes #{step.proposal_id}"
        return desc, host.execute(step.caller, step.proposal_id)
    if step.action == "advance":
        now = host.advance(seconds=step.seconds, minutes=step.minutes)
        return f"clock advanced to {now}", CallResult(success=True, value=now)
    if step.action == "fund":
        balance = host.fund(step.amount)
        return f"treasury funded with {step.amount}", CallResult(success=True, value=balance)
    raise click.ClickException(f"Unknown scenario action: {step.action}")


def proposal_rows(host: ContractHost) -> List[Dict[str, Any]]:
    governor = host.governor
    now = governor.now()
    rows = []
    for proposal_id in range(governor.next_proposal_id()):
        proposal = governor.get_proposal(proposal_id)
        if proposal is None:
            continue
        tally = governor.get_tally(proposal_id)
        rows.append({
            "id": proposal_id,
            **proposal.to_dict(),
            **tally.to_dict(),
            "state": proposal.state(now).name,
        })
    return rows


@click.group()
@click.version_option(version=__version__, prog_name="treasury-dao")
def cli():
    """Treasury DAO governor simulator.

    Token-weighted proposals, votes and treasury payouts.
    """
    pass


@cli.command("show-config")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def show_config_cmd(config_file: str):
    """Print the resolved configuration as JSON.

    Examples:

        treasury-dao show-config dao.toml
    """
    cfg = load_validated(config_file)
    click.echo(json.dumps(cfg.to_dict(), indent=2))


@cli.command("simulate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option("--json", "as_json", is_flag=True, help="Print the final state as JSON")
def simulate_cmd(config_file: str, log_level: str, as_json: bool):
    """Deploy from CONFIG_FILE and replay its scenario.

    Examples:

        treasury-dao simulate dao.toml

        treasury-dao simulate dao.toml --log-level DEBUG --json
    """
    cfg = load_validated(config_file)
    set_log_level((log_level or cfg.logging.level).upper())

    host = deploy_from_config(cfg)
    failures = 0
    results = []

    for index, step in enumerate(cfg.scenario):
        try:
            desc, result = run_step(host, step)
        except (TypeError, ValueError) as e:
            raise click.ClickException(f"Scenario step {index} ({step.action}) failed: {e}")
        results.append({"step": index, "description": desc, **result.to_dict()})
        if result:
            if not as_json:
                click.echo(f"[{index}] {desc}: " + click.style("ok", fg="green"))
        else:
            failures += 1
            if not as_json:
                click.echo(
                    f"[{index}] {desc}: "
                    + click.style(result.error.name if result.error else "failed", fg="red")
                )

    rows = proposal_rows(host)
    if as_json:
        click.echo(json.dumps({
            "steps": results,
            "proposals": rows,
            "treasuryBalance": host.treasury_balance,
            "now": host.governor.now(),
        }, indent=2))
        return

    click.echo()
    click.echo(click.style("Proposals", bold=True))
    if not rows:
        click.echo("  (none)")
    for row in rows:
        state = row["state"]
        colour = "green" if state == ProposalState.EXECUTED.name else "yellow"
        click.echo(
            f"  #{row['id']:<3} to={row['recipient']:<12} amount={row['amount']:<10} "
            f"for={row['forWeight']:<10} against={row['againstWeight']:<10} "
            + click.style(state, fg=colour)
        )
    click.echo()
    click.echo(f"Treasury balance: {host.treasury_balance}")
    click.echo(f"Steps: {len(results)} ({failures} rejected)")


def main():
    cli()


if __name__ == "__main__":
    main()
