"""bsdadm runtime configuration and settings."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class BsdadmConfig:
    """Names and defaults of the external tools bsdadm drives.

    Attributes:
        sysctl_command: Reports hw.disknames (default: sysctl)
        bioctl_command: Attaches, detaches and reports softraid volumes (default: bioctl)
        softraid_device: Softraid controller to attach to (default: softraid0)
        mount_command: Lists the mount table and mounts filesystems (default: mount)
        umount_command: Unmounts filesystems (default: umount)
        fsck_command: Checks filesystems in preen mode (default: fsck)
        default_mount_options: Options passed to mount (default: -o softdep)
        rsync_command: Copies snapshot trees (default: rsync)
        rsync_options: Standard rsync options (default: -avxH8)
    """

    sysctl_command: str = "sysctl"
    bioctl_command: str = "bioctl"
    softraid_device: str = "softraid0"
    mount_command: str = "mount"
    umount_command: str = "umount"
    fsck_command: str = "fsck"
    default_mount_options: str = "-o softdep"

    rsync_command: str = "rsync"
    rsync_options: str = "-avxH8"  # archive, verbose, one fs, hard links, 8-bit names

    @classmethod
    def from_env(cls) -> "BsdadmConfig":
        """Create config from environment variables.

        Environment variables:
            BSDADM_SYSCTL, BSDADM_BIOCTL, BSDADM_SOFTRAID_DEVICE,
            BSDADM_MOUNT, BSDADM_UMOUNT, BSDADM_FSCK,
            BSDADM_MOUNT_OPTIONS, BSDADM_RSYNC, BSDADM_RSYNC_OPTIONS

        Returns:
            BsdadmConfig instance with values from environment or defaults
        """
        return cls(
            sysctl_command=os.getenv("BSDADM_SYSCTL", cls.sysctl_command),
            bioctl_command=os.getenv("BSDADM_BIOCTL", cls.bioctl_command),
            softraid_device=os.getenv("BSDADM_SOFTRAID_DEVICE", cls.softraid_device),
            mount_command=os.getenv("BSDADM_MOUNT", cls.mount_command),
            umount_command=os.getenv("BSDADM_UMOUNT", cls.umount_command),
            fsck_command=os.getenv("BSDADM_FSCK", cls.fsck_command),
            default_mount_options=os.getenv("BSDADM_MOUNT_OPTIONS", cls.default_mount_options),
            rsync_command=os.getenv("BSDADM_RSYNC", cls.rsync_command),
            rsync_options=os.getenv("BSDADM_RSYNC_OPTIONS", cls.rsync_options),
        )


_config: Optional[BsdadmConfig] = None


def get_config() -> BsdadmConfig:
    """Get the process-wide settings, created from the environment on first use."""
    global _config
    if _config is None:
        _config = BsdadmConfig.from_env()
    return _config


def set_config(config: Optional[BsdadmConfig]):
    """Replace the process-wide settings (None re-reads the environment)."""
    global _config
    _config = config


def mock_from_env() -> bool:
    """True when BSDADM_MOCK is set to 1 or true (any case)."""
    return os.environ.get("BSDADM_MOCK", "").strip().lower() in ("1", "true")
