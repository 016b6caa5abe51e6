#!/usr/bin/env python3
"""bsdadm CLI - small OpenBSD administration utilities."""

import typer
from rich.console import Console

from bsdadm import __version__
from bsdadm.cli_cryptmount_commands import register_cryptmount_commands
from bsdadm.cli_maintenance_commands import register_maintenance_commands

app = typer.Typer(
    name="bsdadm",
    help="""bsdadm - small OpenBSD administration utilities

Quick start:
  bsdadm cryptmount mount --disk0 DUID.a --disk1 DUID.d --dir /backup
  bsdadm cryptmount unmount --volume backup
  bsdadm logrotate /var/log/backup.log --size 1048576 --num 5
  bsdadm snapshot --src /home --dst /backup/home
""",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def _version_callback(value: bool):
    if value:
        console.print(f"bsdadm {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    pass


register_cryptmount_commands(app, console)
register_maintenance_commands(app, console)

if __name__ == "__main__":
    app()
