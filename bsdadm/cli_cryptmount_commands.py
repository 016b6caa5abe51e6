"""cryptmount CLI commands - mount, unmount, status, volumes."""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from bsdadm.cli_support import (
    USAGE_ERROR,
    handle_cli_error,
    is_mock,
    print_info,
    print_success,
    print_warning,
    setup_logging,
    usage_error,
)
from bsdadm.config.loader import VolumeConfigLoader, find_config
from bsdadm.core.config import get_config
from bsdadm.core.errors import BsdadmError, ConfigValidationError, DiskSpecError
from bsdadm.core.orchestrator import MountOrchestrator
from bsdadm.core.runner import CommandRunner
from bsdadm.models.disk import DiskSpec, MountRequest

# Module-level console instance (will be set by register function)
console: Console = Console()

CryptmountTyper = typer.Typer(
    help="""Attach an encrypted partition to softraid and mount it.

Disks are given as DUID.PART, e.g. a3a6acb427840bc0.a: the disk's
disklabel DUID and a partition letter. --disk0 is the encrypted RAID
partition on the physical disk, --disk1 the FFS partition on the
decrypted logical disk that gets mounted on --dir.
""",
    no_args_is_help=True,
)


def _validate_disk_spec(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        DiskSpec.parse(value)
    except DiskSpecError as e:
        raise typer.BadParameter(f"{value!r}: {e}")
    return value


DISK0_OPTION = typer.Option(
    None, "--disk0", callback=_validate_disk_spec, metavar="DUID.PART",
    help="Encrypted RAID partition to attach to softraid",
)
DISK1_OPTION = typer.Option(
    None, "--disk1", callback=_validate_disk_spec, metavar="DUID.PART",
    help="FFS partition on the decrypted logical disk",
)
DIR_OPTION = typer.Option(None, "--dir", help="Directory to mount the filesystem on")
MOUNTOPTS_OPTION = typer.Option(None, "--mountopts", help="Options for mount (default: \"-o softdep\")")
VOLUME_OPTION = typer.Option(None, "--volume", "-V", help="Named volume from the config file")
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Volume config file path")
DRY_RUN_OPTION = typer.Option(False, "--dry-run", help="Query state but only log mutating commands")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
LOG_FILE_OPTION = typer.Option(None, "--log-file", help="Path to log file")


def build_request(
    disk0: Optional[str],
    disk1: Optional[str],
    directory: Optional[str],
    mountopts: Optional[str],
    volume: Optional[str],
    config_path: Optional[str],
) -> MountRequest:
    """Assemble the MountRequest from options and, with --volume, the config file.

    Raises:
        ConfigValidationError: If the volume file or entry is unusable
        typer.Exit: If a required option is missing
    """
    settings = get_config()

    if volume:
        path = find_config(config_path)
        if path is None:
            raise ConfigValidationError("No volume config file found; use --config")
        loader = VolumeConfigLoader(path)
        loader.load()
        return loader.build_request(
            volume,
            settings.default_mount_options,
            {"disk0": disk0, "disk1": disk1, "dir": directory, "mountopts": mountopts},
        )

    for name, value in (("--disk0", disk0), ("--disk1", disk1), ("--dir", directory)):
        if not value:
            usage_error(console, f"Missing option {name}")

    return MountRequest(
        physical=DiskSpec.parse(disk0),
        logical=DiskSpec.parse(disk1),
        target_dir=directory,
        mount_options=mountopts if mountopts is not None else settings.default_mount_options,
    )


def _prepare(disk0, disk1, directory, mountopts, volume, config_path, dry_run, verbose, log_file):
    setup_logging(log_file=log_file, verbose=verbose)
    try:
        request = build_request(disk0, disk1, directory, mountopts, volume, config_path)
    except ConfigValidationError as e:
        handle_cli_error(e, console, verbose, exit_code=USAGE_ERROR)
    orchestrator = MountOrchestrator(CommandRunner(mock=is_mock(dry_run)), get_config())
    return request, orchestrator


def mount(
    disk0: Optional[str] = DISK0_OPTION,
    disk1: Optional[str] = DISK1_OPTION,
    directory: Optional[str] = DIR_OPTION,
    mountopts: Optional[str] = MOUNTOPTS_OPTION,
    volume: Optional[str] = VOLUME_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    verbose: bool = VERBOSE_OPTION,
    log_file: Optional[str] = LOG_FILE_OPTION,
):
    """Attach --disk0, fsck and mount --disk1 on --dir.

    Steps already done are skipped, so running mount twice is harmless.
    """
    request, orchestrator = _prepare(
        disk0, disk1, directory, mountopts, volume, config, dry_run, verbose, log_file
    )
    try:
        stage = orchestrator.mount(request)
    except BsdadmError as e:
        handle_cli_error(e, console, verbose)

    if orchestrator.mock:
        print_info(console, f"Dry run: nothing changed, stage is {stage.name.lower()}")
    else:
        print_success(console, f"{request.logical} mounted on {request.target_dir}")


def unmount(
    disk0: Optional[str] = DISK0_OPTION,
    disk1: Optional[str] = DISK1_OPTION,
    directory: Optional[str] = DIR_OPTION,
    mountopts: Optional[str] = MOUNTOPTS_OPTION,
    volume: Optional[str] = VOLUME_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    verbose: bool = VERBOSE_OPTION,
    log_file: Optional[str] = LOG_FILE_OPTION,
):
    """Unmount --disk1 from --dir and detach the softraid volume."""
    request, orchestrator = _prepare(
        disk0, disk1, directory, mountopts, volume, config, dry_run, verbose, log_file
    )
    try:
        stage = orchestrator.unmount(request)
    except BsdadmError as e:
        handle_cli_error(e, console, verbose)

    if orchestrator.mock:
        print_info(console, f"Dry run: nothing changed, stage is {stage.name.lower()}")
    else:
        print_success(console, f"{request.physical} unmounted and detached")


def status(
    disk0: Optional[str] = DISK0_OPTION,
    disk1: Optional[str] = DISK1_OPTION,
    directory: Optional[str] = DIR_OPTION,
    volume: Optional[str] = VOLUME_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show the current stage of the disk pair without changing anything."""
    request, orchestrator = _prepare(
        disk0, disk1, directory, None, volume, config, False, verbose, None
    )
    try:
        report = orchestrator.status(request)
    except BsdadmError as e:
        handle_cli_error(e, console, verbose)

    table = Table(title="cryptmount status", show_header=True, header_style="bold cyan")
    table.add_column("Item", style="bold")
    table.add_column("Value")
    table.add_row("Stage", report.stage.name.lower())
    table.add_row("Physical", f"{request.physical} -> {report.physical_path or 'not present'}")
    table.add_row("Logical", f"{request.logical} -> {report.logical_path or 'not present'}")
    table.add_row("Softraid volume", report.attachment.logical_device or "-")
    table.add_row("Directory", request.target_dir)
    console.print(table)


def volumes(
    config: Optional[str] = CONFIG_OPTION,
):
    """List volumes defined in the config file."""
    path = find_config(config)
    if path is None:
        print_warning(console, "No volume config file found")
        return

    loader = VolumeConfigLoader(path)
    try:
        loader.load()
    except ConfigValidationError as e:
        handle_cli_error(e, console, exit_code=USAGE_ERROR)

    table = Table(title=f"Volumes ({path})")
    table.add_column("Name", style="cyan")
    table.add_column("disk0", style="green")
    table.add_column("disk1", style="green")
    table.add_column("dir", style="yellow")
    table.add_column("mountopts", style="magenta")

    for name in loader.volume_names():
        volume = loader.get_volume(name)
        table.add_row(
            name,
            str(volume.get("disk0", "-")),
            str(volume.get("disk1", "-")),
            str(volume.get("dir", "-")),
            str(volume.get("mountopts", get_config().default_mount_options)),
        )

    console.print(table)


def register_cryptmount_commands(root: typer.Typer, shared_console: Console) -> None:
    """Attach the cryptmount command group to the main CLI."""
    global console
    console = shared_console

    CryptmountTyper.command("mount")(mount)
    CryptmountTyper.command("unmount")(unmount)
    CryptmountTyper.command("status")(status)
    CryptmountTyper.command("volumes")(volumes)
    root.add_typer(CryptmountTyper, name="cryptmount")
