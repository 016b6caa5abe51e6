"""Mount table inspection via ``mount``."""
from typing import Optional

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.logger import get_logger
from bsdadm.discovery.disknames import DeviceLocator
from bsdadm.models.disk import DiskSpec, MountState

logger = get_logger(__name__)


def is_listed(mount_table: str, device_path: str, target_dir: str) -> bool:
    """True if a mount table line starts with ``<device> on <dir>``.

    Lines look like ``/dev/sd1l on /home type ffs (local, nodev, softdep)``.
    The directory must be followed by a space or end the line, so
    ``/backup`` does not match ``/backup2``.
    """
    prefix = f"{device_path} on {target_dir}"
    for line in mount_table.splitlines():
        if not line.startswith(prefix):
            continue
        rest = line[len(prefix):]
        if not rest or rest[0] == " ":
            return True
    return False


class FilesystemStateDetector:
    """Reports whether a logical partition is mounted on a directory."""

    def __init__(self, runner, locator: DeviceLocator, config: Optional[BsdadmConfig] = None):
        self.runner = runner
        self.locator = locator
        self.config = config or BsdadmConfig()

    def mount_table(self) -> str:
        return self.runner.query([self.config.mount_command])

    def is_mounted(self, logical: DiskSpec, target_dir: str) -> bool:
        device_path = self.locator.locate(logical)
        if device_path is None:
            logger.debug(f"Disk {logical} not present, cannot be mounted")
            return False
        return is_listed(self.mount_table(), device_path, target_dir)

    def mount_state(self, logical: DiskSpec, target_dir: str) -> MountState:
        if self.is_mounted(logical, target_dir):
            return MountState.MOUNTED
        return MountState.UNMOUNTED
