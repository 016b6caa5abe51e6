"""DUID to kernel device name resolution via ``sysctl hw.disknames``."""
from typing import List, Optional, Tuple

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.errors import DuplicateDiskError, MalformedReportError
from bsdadm.core.logger import get_logger
from bsdadm.models.disk import DiskSpec

logger = get_logger(__name__)

DISKNAMES_MIB = "hw.disknames"


def parse_disknames(report: str) -> List[Tuple[str, str]]:
    """Split a disk-name report into (device, duid) pairs.

    Example:
        >>> parse_disknames("hw.disknames=sd0:e072adf1dcc1be16,cd0:")
        [('sd0', 'e072adf1dcc1be16'), ('cd0', '')]

    Raises:
        MalformedReportError: If the report is not ``prefix=name:id,...``
    """
    report = report.strip()
    parts = report.split("=")
    if len(parts) != 2:
        raise MalformedReportError(f"Malformed disk name report: {report!r}")

    entries = []
    for entry in parts[1].split(","):
        fields = entry.split(":")
        if len(fields) != 2:
            raise MalformedReportError(f"Malformed disk name report: {report!r}")
        entries.append((fields[0], fields[1]))
    return entries


class DiskNameTable:
    """Point-in-time lookup of kernel disk names by DUID.

    Every lookup re-reads the report; device names can change between
    boots and whenever a disk is plugged in.
    """

    def __init__(self, runner, config: Optional[BsdadmConfig] = None):
        self.runner = runner
        self.config = config or BsdadmConfig()

    def report(self) -> str:
        return self.runner.query([self.config.sysctl_command, DISKNAMES_MIB])

    def resolve(self, identifier: str) -> Optional[str]:
        """Return the device name (e.g. ``sd0``) for a DUID, or None if absent.

        Raises:
            MalformedReportError: If the report cannot be parsed
            DuplicateDiskError: If several devices report the DUID
            StatusCommandError: If the sysctl query fails
        """
        matches = [name for name, duid in parse_disknames(self.report()) if duid == identifier]
        if not matches:
            logger.debug(f"Disk {identifier} not present")
            return None
        if len(matches) > 1:
            raise DuplicateDiskError(
                f"DUID {identifier} reported by several devices: {', '.join(matches)}"
            )
        return matches[0]


class DeviceLocator:
    """Builds /dev paths for DiskSpecs."""

    def __init__(self, table: DiskNameTable):
        self.table = table

    def device_name(self, spec: DiskSpec) -> Optional[str]:
        """Device plus partition, e.g. ``sd0a``; None if the disk is absent."""
        base = self.table.resolve(spec.identifier)
        if base is None:
            return None
        return base + spec.partition

    def locate(self, spec: DiskSpec) -> Optional[str]:
        """Device path, e.g. ``/dev/sd0a``; None if the disk is absent."""
        name = self.device_name(spec)
        if name is None:
            return None
        return f"/dev/{name}"
