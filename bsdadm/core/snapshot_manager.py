"""Incremental directory snapshots with rsync hard links."""
import os
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.errors import RsyncError, SnapshotError
from bsdadm.core.logger import get_logger
from bsdadm.core.runner import CommandRunner

logger = get_logger(__name__)

WORK_DIR = "snapshot"
LAST_LINK = "last"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def exclude_options(patterns: str) -> List[str]:
    """Turn ``"a/*,.cache/*"`` into rsync ``--exclude`` options."""
    if not patterns:
        return []
    return [f"--exclude={pattern}" for pattern in patterns.split(",")]


class SnapshotManager:
    """Creates timestamped copies of a directory tree under a backup directory.

    Unchanged files are hard-linked to the previous snapshot, which the
    ``last`` symlink points at.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, config: Optional[BsdadmConfig] = None):
        self.runner = runner or CommandRunner()
        self.config = config or BsdadmConfig()

    @property
    def mock(self) -> bool:
        return getattr(self.runner, "mock", False)

    def snapshot(self, src: str, dst: Union[str, Path], exclude: str = "") -> Path:
        """Copy ``src`` into a new ``dst/<timestamp>`` directory.

        Args:
            src: Directory tree to back up
            dst: Directory holding the snapshots
            exclude: Comma separated rsync exclude patterns

        Returns:
            Path of the new snapshot directory

        Raises:
            RsyncError: If rsync fails
            SnapshotError: If ``dst/last`` exists but is not a directory
        """
        dst = Path(dst)
        logger.info(f"=== snapshot started ({self.timestamp()})")
        logger.info(f"src: {src!r}")
        logger.info(f"dst: {str(dst)!r}")
        begin = time.monotonic()

        workdir = self.make_work_dir(dst)

        args = [self.config.rsync_command, *self.config.rsync_options.split()]
        args.extend(exclude_options(exclude))
        link_dest = self.link_dest_option(dst)
        if link_dest:
            args.append(link_dest)
        args.extend([src, str(workdir)])

        for line in self.runner.stream(args, RsyncError):
            logger.info(f"rsync: {line}")

        stamp = self.timestamp()
        target = dst / stamp
        self.finish(workdir, target)

        logger.info(f"=== snapshot finished in {time.monotonic() - begin:.1f}s")
        return target

    def make_work_dir(self, dst: Path) -> Path:
        """Create ``dst/snapshot``; an existing one is reused."""
        workdir = dst / WORK_DIR
        if self.mock:
            logger.info(f"MOCK: Would create {workdir}")
            return workdir
        try:
            workdir.mkdir(mode=0o755)
        except FileExistsError:
            logger.warning(f"{workdir} already exists - previous snapshot unfinished?")
        except OSError as e:
            raise SnapshotError(f"Cannot create {workdir}: {e}") from e
        return workdir

    def link_dest_option(self, dst: Path) -> Optional[str]:
        """``--link-dest`` pointing at the previous snapshot, if there is one.

        rsync resolves a relative --link-dest against the destination, so the
        path is made absolute.
        """
        last = Path(os.path.abspath(dst / LAST_LINK))
        if not last.exists():
            logger.warning(f"{last} does not exist - first snapshot?")
            return None
        if not last.is_dir():
            raise SnapshotError(f"{last} is not a directory")
        return f"--link-dest={last}"

    def finish(self, workdir: Path, target: Path) -> None:
        """Rename the work directory and repoint ``last`` at it."""
        last = target.parent / LAST_LINK
        if self.mock:
            logger.info(f"MOCK: Would rename {workdir} to {target}")
            logger.info(f"MOCK: Would point {last} at {target.name}")
            return

        logger.info(f"Renaming {WORK_DIR!r} to {target.name!r}")
        try:
            workdir.rename(target)
        except OSError as e:
            raise SnapshotError(f"Cannot rename {workdir} to {target}: {e}") from e

        logger.info(f"Pointing {LAST_LINK!r} at {target.name!r}")
        try:
            last.unlink()
        except FileNotFoundError:
            logger.warning(f"{last} does not exist - first snapshot?")
        except OSError as e:
            raise SnapshotError(f"Cannot remove {last}: {e}") from e
        try:
            last.symlink_to(target.name)
        except OSError as e:
            raise SnapshotError(f"Cannot create {last}: {e}") from e

    @staticmethod
    def timestamp() -> str:
        return datetime.now().strftime(TIMESTAMP_FORMAT)
