"""Maintenance CLI commands - logrotate, snapshot."""
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from bsdadm.cli_support import (
    USAGE_ERROR,
    handle_cli_error,
    is_mock,
    print_info,
    print_success,
    setup_logging,
)
from bsdadm.core.config import get_config
from bsdadm.core.errors import BsdadmError
from bsdadm.core.logrotate import LogRotator
from bsdadm.core.runner import CommandRunner
from bsdadm.core.snapshot_manager import SnapshotManager

# Module-level console instance (will be set by register function)
console: Console = Console()


def logrotate(
    logfile: Path = typer.Argument(..., help="Log file to rotate"),
    size: int = typer.Option(0, "--size", min=0, help="Rotate once the file reaches this many bytes (0: never)"),
    num: int = typer.Option(0, "--num", min=0, help="Maximum number of archived files (0: unlimited)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Report every rename"),
):
    """Rotate a log file: log -> log.0, log.0 -> log.1, ...

    Compressed archives (log.1.gz) keep their extension while shifting.
    """
    setup_logging(verbose=verbose)

    try:
        rotated = LogRotator().rotate(logfile, size=size, num=num)
    except BsdadmError as e:
        handle_cli_error(e, console, verbose)

    if rotated:
        print_success(console, f"Rotated {logfile}")
    elif verbose:
        print_info(console, f"{logfile} is below {size} bytes, not rotated")


def snapshot(
    src: str = typer.Option(..., "--src", help="Directory tree to back up"),
    dst: Path = typer.Option(..., "--dst", help="Directory holding the snapshots"),
    exclude: str = typer.Option("", "--exclude", help="Patterns to skip: \"pattern,pattern,...\""),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also append the log to this file"),
    rsync: Optional[str] = typer.Option(None, "--rsync", help="rsync command (default: rsync)"),
    rsyncopts: Optional[str] = typer.Option(None, "--rsyncopts", help="rsync options (default: \"-avxH8\")"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only log what would be done"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Copy --src into a new timestamped directory under --dst.

    Files unchanged since the previous snapshot (the one 'last' points at)
    are hard-linked instead of copied.
    """
    try:
        setup_logging(log_file=log_file, verbose=verbose)
    except OSError as e:
        handle_cli_error(e, console, verbose, exit_code=USAGE_ERROR)

    settings = get_config()
    settings = replace(
        settings,
        rsync_command=rsync or settings.rsync_command,
        rsync_options=rsyncopts if rsyncopts is not None else settings.rsync_options,
    )

    manager = SnapshotManager(CommandRunner(mock=is_mock(dry_run)), settings)
    try:
        target = manager.snapshot(src, dst, exclude=exclude)
    except BsdadmError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, f"Snapshot {target}")


def register_maintenance_commands(root: typer.Typer, shared_console: Console) -> None:
    """Register maintenance commands with the main Typer app."""
    global console
    console = shared_console

    root.command()(logrotate)
    root.command()(snapshot)
