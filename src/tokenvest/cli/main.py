"""
Main CLI entry point for tokenvest.

Every command loads the pool from the state file, runs one operation as
``--caller`` at time ``--now``, and writes the state back on success.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import click

from ..core import config
from ..core.logging_config import setup_logging
from .vesting_commands import COMMANDS, console

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--state",
    "state_path",
    default=config.STATE_FILE,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Pool state file",
    show_default=True,
)
@click.option("--caller", default=None, help="Identity performing the command (defaults to the first admin)")
@click.option("--now", type=int, default=None, help="Override the current Unix timestamp")
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option("--verbose", is_flag=True, help="Write JSON logs to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    state_path: Path,
    caller: str | None,
    now: int | None,
    json_output: bool,
    verbose: bool,
):
    """
    tokenvest - round-based token vesting pool

    Configure vesting rounds, enroll participants and settle claims
    against a local pool state file.
    """
    ctx.ensure_object(dict)
    setup_logging(
        name="tokenvest",
        log_file=config.LOG_FILE,
        level=config.LOG_LEVEL,
        environment=config.NETWORK,
        enable_console=verbose,
    )
    ctx.obj["state_path"] = state_path
    ctx.obj["caller"] = caller or config.ADMIN_ADDRESSES[0]
    ctx.obj["now"] = now if now is not None else int(time.time())
    ctx.obj["json_output"] = json_output
    logger.debug(
        "CLI invoked",
        extra={"event": "cli.invoked", "caller": ctx.obj["caller"], "state": str(state_path)},
    )


for command in COMMANDS:
    cli.add_command(command)


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
