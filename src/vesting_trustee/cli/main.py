#!/usr/bin/env python3
"""
Vesting Trustee CLI - Schedule and State Inspection

Provides command line access to the vesting calculator and trustee state:
- Tabulate a vesting schedule
- Encode and decode grant instructions for deposits
- Inspect a saved trustee state file
"""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.table import Table

from vesting_trustee.core.config import ConfigurationError, get_settings
from vesting_trustee.core.constants import MONTH
from vesting_trustee.core.contracts.grant_payload import decode_grant_payload, encode_grant_payload
from vesting_trustee.core.exceptions import ContractError
from vesting_trustee.core.logging_config import setup_logging
from vesting_trustee.core.state_store import load_state
from vesting_trustee.core.vesting import Grant, installment_schedule, validate_schedule

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _format_timestamp(timestamp: int) -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(timestamp))


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override VESTING_LOG_LEVEL",
)
@click.option("--json-output", is_flag=True, help="Print machine-readable JSON")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, json_output: bool):
    """Vesting trustee schedule and state tools."""
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        _handle_cli_error(exc)
    setup_logging(
        name="vesting_trustee",
        log_file=settings.log_file,
        level=log_level or settings.log_level,
        environment=settings.environment,
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["json_output"] = json_output


@cli.command("schedule")
@click.option("--value", required=True, type=int, help="Total amount granted")
@click.option("--start", required=True, type=int, help="Vesting start timestamp")
@click.option("--cliff", required=True, type=int, help="Cliff timestamp")
@click.option("--end", required=True, type=int, help="Vesting end timestamp")
@click.option("--installment", required=True, type=int, help="Installment length in seconds")
@click.option("--step", default=MONTH, show_default=True, type=int, help="Row spacing in seconds")
@click.pass_context
def schedule(ctx: click.Context, value: int, start: int, cliff: int, end: int, installment: int, step: int):
    """
    Show how much of a grant has vested over time.

    Example:
        vesting-trustee schedule --value 1000 --start 0 --cliff 2628000 \\
            --end 31536000 --installment 86400
    """
    try:
        validate_schedule(value, start, cliff, end, installment)
        grant = Grant(value=value, start=start, cliff=cliff, end=end, installment_length=installment)
        rows = list(installment_schedule(grant, step=step))
    except (ContractError, ValueError) as exc:
        _handle_cli_error(exc)

    if ctx.obj.get("json_output"):
        click.echo(json.dumps([{"timestamp": t, "vested": v} for t, v in rows], indent=2))
        return

    table = Table(title="Vesting Schedule", box=box.ROUNDED)
    table.add_column("Timestamp", justify="right")
    table.add_column("Elapsed (s)", justify="right")
    table.add_column("Vested", justify="right", style="green")
    table.add_column("%", justify="right")
    for timestamp, vested in rows:
        table.add_row(
            str(timestamp),
            str(timestamp - start),
            str(vested),
            f"{vested * 100 / value:.2f}",
        )
    console.print(table)


@cli.command("encode-grant")
@click.option("--to", "to", required=True, help="Beneficiary address")
@click.option("--start", required=True, type=int)
@click.option("--cliff", required=True, type=int)
@click.option("--end", required=True, type=int)
@click.option("--installment", required=True, type=int)
@click.option("--revokable", is_flag=True, help="Allow the trustee owner to revoke the grant")
def encode_grant(to: str, start: int, cliff: int, end: int, installment: int, revokable: bool):
    """Print the transferAndCall data for a self-funded grant."""
    try:
        payload = encode_grant_payload(to, start, cliff, end, installment, revokable)
    except ContractError as exc:
        _handle_cli_error(exc)
    click.echo("0x" + payload.hex())


@cli.command("decode-grant")
@click.argument("payload")
@click.pass_context
def decode_grant(ctx: click.Context, payload: str):
    """Decode transferAndCall data into grant fields."""
    try:
        raw = bytes.fromhex(payload[2:] if payload.startswith("0x") else payload)
        decoded = decode_grant_payload(raw)
    except (ContractError, ValueError) as exc:
        _handle_cli_error(exc)

    fields: dict[str, Any] = {
        "to": decoded.to,
        "start": decoded.start,
        "cliff": decoded.cliff,
        "end": decoded.end,
        "installment_length": decoded.installment_length,
        "revokable": decoded.revokable,
    }
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(fields, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key, val in fields.items():
        table.add_row(key, str(val))
    console.print(table)


@cli.command("inspect")
@click.argument("state_file", required=False)
@click.option("--at", "at_time", type=int, default=None, help="Evaluate at this timestamp (default: now)")
@click.pass_context
def inspect_state(ctx: click.Context, state_file: str | None, at_time: int | None):
    """
    Show live grants, reserved total and surplus from a saved state file.

    STATE_FILE defaults to VESTING_STATE_PATH.
    """
    path = state_file or ctx.obj["settings"].state_path
    now = at_time if at_time is not None else int(time.time())
    try:
        token, trustee = load_state(path, time_provider=lambda: now)
    except (ContractError, OSError) as exc:
        _handle_cli_error(exc)

    grants = []
    for holder, grant in trustee.registry.items():
        grants.append({
            "holder": holder,
            "value": grant.value,
            "transferred": grant.transferred,
            "vested": trustee.vested_tokens(holder, now),
            "ready": trustee.ready_tokens(holder),
            "cliff": grant.cliff,
            "end": grant.end,
            "revokable": grant.revokable,
        })
    summary = {
        "trustee": trustee.address,
        "owner": trustee.owner,
        "token": token.symbol,
        "at": now,
        "balance": token.balance_of(trustee.address),
        "total_reserved": trustee.total_reserved,
        "surplus": trustee.available_surplus(),
        "grants": grants,
    }

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(summary, indent=2))
        return

    overview = Table(show_header=False, box=box.ROUNDED)
    overview.add_row("Trustee", trustee.address)
    overview.add_row("Owner", trustee.owner)
    overview.add_row("Evaluated at", _format_timestamp(now))
    overview.add_row(f"Balance ({token.symbol})", str(summary["balance"]))
    overview.add_row("Total reserved", str(summary["total_reserved"]))
    overview.add_row("Surplus", str(summary["surplus"]))
    console.print(overview)

    if not grants:
        console.print("[yellow]No live grants[/]")
        return

    table = Table(title="Live Grants", box=box.ROUNDED)
    for column in ("Holder", "Value", "Transferred", "Vested", "Ready", "Cliff", "End", "Revokable"):
        table.add_column(column, justify="left" if column == "Holder" else "right")
    for row in grants:
        table.add_row(
            row["holder"],
            str(row["value"]),
            str(row["transferred"]),
            str(row["vested"]),
            str(row["ready"]),
            _format_timestamp(row["cliff"]),
            _format_timestamp(row["end"]),
            "yes" if row["revokable"] else "no",
        )
    console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
