"""Shared utilities for bsdadm CLI modules."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from bsdadm.core.config import mock_from_env

USAGE_ERROR = 2


def is_mock(dry_run: bool = False) -> bool:
    """Return True when mutating commands should only be logged."""
    return dry_run or mock_from_env()


def setup_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Apply --verbose and --log-file for a CLI command.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable debug logging
    """
    from bsdadm.core.logger import set_verbose, setup_file_logging

    set_verbose(verbose)
    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def usage_error(console: Console, message: str) -> None:
    """Report invalid arguments and exit with the usage status."""
    handle_cli_error(Exception(message), console, exit_code=USAGE_ERROR)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {escape(message)}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {escape(message)}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {escape(message)}")
