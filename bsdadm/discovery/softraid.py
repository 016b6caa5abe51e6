"""Softraid CRYPTO attachment detection via ``bioctl softraid0``.

A typical status report looks like::

    Volume      Status               Size Device
    softraid0 0 Online        2000396018176 sd3     CRYPTO
              0 Online        2000396018176 3:0.0   noencl <sd2a>

The volume line names the decrypted device (``sd3``) and its RAID level; the
chunk lines below it name the physical partitions in angle brackets.
"""
from typing import Optional

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.logger import get_logger
from bsdadm.discovery.disknames import DeviceLocator
from bsdadm.models.disk import AttachmentState, DiskSpec

logger = get_logger(__name__)

CRYPTO_LEVEL = "CRYPTO"
STATUS_FIELDS = 6


def find_crypto_volume(report: str, chunk: str) -> Optional[str]:
    """Return the CRYPTO volume holding ``chunk`` (e.g. ``sd2a``), if any.

    A controller without volumes prints nothing at all, not even the
    ``Volume`` header, so an empty report simply yields None.
    """
    bracketed = f"<{chunk}>"
    volume = None
    for line in report.splitlines():
        fields = line.split()
        if len(fields) != STATUS_FIELDS:
            continue
        last = fields[5]
        if last == bracketed:
            if volume is not None:
                return volume
            continue
        if last.startswith("<"):
            continue
        # A volume line starts a new group; only CRYPTO groups count.
        volume = fields[4] if last == CRYPTO_LEVEL else None
    return None


class SoftraidStateDetector:
    """Reports whether a physical partition is attached to the softraid controller."""

    def __init__(self, runner, locator: DeviceLocator, config: Optional[BsdadmConfig] = None):
        self.runner = runner
        self.locator = locator
        self.config = config or BsdadmConfig()

    def status_report(self) -> str:
        return self.runner.query([self.config.bioctl_command, self.config.softraid_device])

    def is_attached(self, physical: DiskSpec) -> AttachmentState:
        """Derive the attachment state of ``physical``.

        A disk that is not plugged in is reported as unattached without
        querying the controller.
        """
        chunk = self.locator.device_name(physical)
        if chunk is None:
            logger.debug(f"Disk {physical} not present, treating as unattached")
            return AttachmentState.unattached()

        volume = find_crypto_volume(self.status_report(), chunk)
        if volume is None:
            return AttachmentState.unattached()

        logger.debug(f"{chunk} attached to {self.config.softraid_device} as {volume}")
        return AttachmentState(attached=True, logical_device=volume)
