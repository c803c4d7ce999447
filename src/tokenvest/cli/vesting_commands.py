#!/usr/bin/env python3
"""
tokenvest Vesting CLI Commands

Operator and participant commands against a pool stored in a JSON state file:
- Round configuration and listing
- Participant enrollment and status
- Claims, admin pushes and pool funding
- Schedule previews
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Tuple

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core import config
from ..core.access_control import static_admins
from ..core.events import EnrollmentEntry
from ..core.fixed_point import fixed_to_percent, percent_to_fixed
from ..core.token import InMemoryToken
from ..core.vesting_exceptions import VestingError
from ..vesting.calculator import vested_total
from ..vesting.ledger import ParticipantRecord
from ..vesting.pool import VestingPool
from ..vesting.state_store import load_state, save_state

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _load(ctx: click.Context) -> Tuple[VestingPool, InMemoryToken]:
    now = ctx.obj["now"]
    return load_state(
        ctx.obj["state_path"],
        is_admin=static_admins(config.ADMIN_ADDRESSES),
        pool_address=config.POOL_ADDRESS,
        token_address=config.TOKEN_ADDRESS,
        time_provider=lambda: now,
    )


@contextmanager
def _pool_session(ctx: click.Context, persist: bool = True) -> Iterator[Tuple[VestingPool, InMemoryToken]]:
    """Load the pool, yield it, and write it back if the body succeeded."""
    try:
        pool, token = _load(ctx)
        yield pool, token
        if persist:
            save_state(ctx.obj["state_path"], pool, token)
    except (VestingError, OSError) as exc:
        _handle_cli_error(exc)


def _emit(ctx: click.Context, data: dict[str, Any], title: str) -> None:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2, default=str))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key, value in data.items():
        table.add_row(f"[bold cyan]{key}", str(value))
    console.print(Panel(table, title=f"[bold green]{title}", border_style="green"))


def _parse_entry(raw: str) -> EnrollmentEntry:
    participant, sep, amount = raw.rpartition("=")
    if not sep or not participant:
        raise click.BadParameter(f"Expected PARTICIPANT=AMOUNT, got {raw!r}")
    try:
        return EnrollmentEntry(participant=participant, amount=int(amount))
    except ValueError as exc:
        raise click.BadParameter(f"Amount for {participant} must be an integer") from exc


# ============================================================================
# Rounds
# ============================================================================

@click.group("round")
def round_group():
    """Vesting round configuration."""
    pass


@round_group.command("create")
@click.option("--start", "unlock_start", required=True, type=int, help="Unlock start timestamp")
@click.option("--cliff-end", "unlock_cliff_end", required=True, type=int, help="Cliff end timestamp")
@click.option("--period", "vesting_period", required=True, type=int, help="Linear vesting period in seconds")
@click.option("--percent", required=True, help="Percent unlocked at the cliff, e.g. 25 or 12.5")
@click.pass_context
def round_create(ctx: click.Context, unlock_start: int, unlock_cliff_end: int, vesting_period: int, percent: str):
    """
    Create a vesting round.

    Example:
        tokenvest round create --start 1700000000 --cliff-end 1702592000 --period 15552000 --percent 20
    """
    try:
        vesting_percent = percent_to_fixed(percent)
    except (ValueError, ArithmeticError) as exc:
        raise click.BadParameter(str(exc), param_hint="--percent") from exc

    with _pool_session(ctx) as (pool, _token):
        round_index = pool.create_round(
            ctx.obj["caller"], unlock_start, unlock_cliff_end, vesting_period, vesting_percent
        )
        _emit(ctx, {"round_index": round_index, **pool.get_round(round_index).to_dict()}, "Round Created")


@round_group.command("list")
@click.pass_context
def round_list(ctx: click.Context):
    """List every round in creation order."""
    with _pool_session(ctx, persist=False) as (pool, _token):
        rounds = pool.list_rounds()
        if ctx.obj.get("json_output"):
            click.echo(json.dumps([r.to_dict() for r in rounds], indent=2))
            return

        table = Table(title="Vesting Rounds", box=box.ROUNDED)
        table.add_column("#", style="cyan")
        table.add_column("Unlock Start")
        table.add_column("Cliff End")
        table.add_column("Period (s)")
        table.add_column("Unlock %", style="green")
        for index, vesting_round in enumerate(rounds):
            table.add_row(
                str(index),
                str(vesting_round.unlock_start),
                str(vesting_round.unlock_cliff_end),
                str(vesting_round.vesting_period),
                f"{fixed_to_percent(vesting_round.vesting_percent):.2f}",
            )
        console.print(table)


# ============================================================================
# Participants
# ============================================================================

@click.command("enroll")
@click.option("--round", "round_index", required=True, type=int, help="Round index to bind participants to")
@click.argument("entries", nargs=-1, required=True)
@click.pass_context
def enroll(ctx: click.Context, round_index: int, entries: tuple[str, ...]):
    """
    Enroll participants as PARTICIPANT=AMOUNT pairs. The batch is all or nothing.

    Example:
        tokenvest enroll --round 0 alice=1000 bob=2500
    """
    batch = [_parse_entry(raw) for raw in entries]
    with _pool_session(ctx) as (pool, _token):
        pool.enroll(ctx.obj["caller"], batch, round_index)
        _emit(
            ctx,
            {"round_index": round_index, "participants": len(batch), "total": sum(e.amount for e in batch)},
            "Enrolled",
        )


@click.command("status")
@click.argument("identity")
@click.pass_context
def status(ctx: click.Context, identity: str):
    """Show a participant's allotment, claimed amount and what is claimable now."""
    with _pool_session(ctx, persist=False) as (pool, token):
        record, available = pool.get_participant(identity)
        data = {
            "identity": identity,
            **record.to_dict(),
            "available": available,
            "state": pool.vesting_state(identity).value,
            "balance": token.balance_of(identity),
        }
        _emit(ctx, data, f"Participant {identity}")


@click.command("schedule")
@click.option("--round", "round_index", required=True, type=int, help="Round index to preview")
@click.option("--allotted", default=1000, show_default=True, type=click.IntRange(min=1), help="Sample allotment")
@click.option("--steps", default=4, show_default=True, type=click.IntRange(1, 100), help="Points inside the linear window")
@click.pass_context
def schedule(ctx: click.Context, round_index: int, allotted: int, steps: int):
    """Preview how a round releases a sample allotment over time."""
    with _pool_session(ctx, persist=False) as (pool, _token):
        vesting_round = pool.get_round(round_index)
        record = ParticipantRecord(allotted=allotted, round_index=round_index)
        points = [vesting_round.unlock_start, vesting_round.unlock_cliff_end]
        points += [
            vesting_round.unlock_cliff_end + vesting_round.vesting_period * i // steps
            for i in range(1, steps + 1)
        ]
        points.append(vesting_round.vesting_end + 1)
        rows = [{"timestamp": t, "vested": vested_total(record, vesting_round, t)} for t in sorted(set(points))]

        if ctx.obj.get("json_output"):
            click.echo(json.dumps(rows, indent=2))
            return

        table = Table(title=f"Round {round_index} schedule", box=box.SIMPLE)
        table.add_column("Timestamp", style="cyan")
        table.add_column("Vested", style="green")
        for row in rows:
            table.add_row(str(row["timestamp"]), str(row["vested"]))
        console.print(table)


# ============================================================================
# Claims and funding
# ============================================================================

@click.command("claim")
@click.pass_context
def claim(ctx: click.Context):
    """Withdraw everything vested for the calling identity."""
    with _pool_session(ctx) as (pool, _token):
        amount = pool.claim(ctx.obj["caller"])
        _emit(ctx, {"identity": ctx.obj["caller"], "amount": amount}, "Claimed")


@click.command("send")
@click.argument("identity")
@click.pass_context
def send(ctx: click.Context, identity: str):
    """Admin: push a participant's full remaining allotment, ignoring the schedule."""
    with _pool_session(ctx) as (pool, _token):
        amount = pool.admin_send(ctx.obj["caller"], identity)
        _emit(ctx, {"identity": identity, "amount": amount}, "Sent")


@click.command("mint")
@click.argument("address")
@click.argument("amount", type=click.IntRange(min=1))
@click.pass_context
def mint(ctx: click.Context, address: str, amount: int):
    """Admin: mint pool tokens to an address (testnet only)."""
    if config.NETWORK != config.NetworkType.TESTNET.value:
        raise click.UsageError("mint is only available on testnet")
    with _pool_session(ctx) as (_pool, token):
        if ctx.obj["caller"].lower() not in {a.lower() for a in config.ADMIN_ADDRESSES}:
            raise click.UsageError(f"{ctx.obj['caller']} is not an admin")
        token.mint(address, amount)
        _emit(ctx, {"address": address, "balance": token.balance_of(address)}, "Minted")


@click.command("deposit")
@click.argument("amount", type=click.IntRange(min=1))
@click.pass_context
def deposit(ctx: click.Context, amount: int):
    """Admin: move tokens from the caller into the pool."""
    with _pool_session(ctx) as (pool, token):
        token.approve(ctx.obj["caller"], pool.pool_address, amount)
        pool.admin_deposit(ctx.obj["caller"], amount)
        _emit(ctx, {"pool": pool.pool_address, "balance": token.balance_of(pool.pool_address)}, "Deposited")


@click.command("withdraw")
@click.argument("amount", type=click.IntRange(min=1))
@click.option("--token", "token_address", default=None, help="Token address, defaults to the pool token")
@click.pass_context
def withdraw(ctx: click.Context, amount: int, token_address: str | None):
    """Admin: move tokens out of the pool to the caller."""
    with _pool_session(ctx) as (pool, token):
        pool.admin_withdraw(ctx.obj["caller"], amount, token_address or token.address)
        _emit(ctx, {"pool": pool.pool_address, "balance": token.balance_of(pool.pool_address)}, "Withdrawn")


@click.command("summary")
@click.pass_context
def summary(ctx: click.Context):
    """Pool-wide totals."""
    with _pool_session(ctx, persist=False) as (pool, token):
        allotted, claimed = pool.totals()
        data = {
            "rounds": pool.round_count(),
            "participants": len(pool.participants()),
            "total_allotted": allotted,
            "total_claimed": claimed,
            "pool_balance": token.balance_of(pool.pool_address),
        }
        _emit(ctx, data, "Pool Summary")


COMMANDS = [round_group, enroll, status, schedule, claim, send, mint, deposit, withdraw, summary]
