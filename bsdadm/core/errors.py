"""Error types raised by bsdadm components."""
from typing import List, Optional, Sequence


class BsdadmError(Exception):
    """Base class for all bsdadm failures."""
    pass


class DiskSpecError(BsdadmError, ValueError):
    """Raised when a DUID.PART disk specification is malformed."""
    pass


class ConfigValidationError(BsdadmError):
    """Raised when a volume configuration file is invalid."""
    pass


class MalformedReportError(BsdadmError):
    """Raised when a system report does not have the expected shape."""
    pass


class DuplicateDiskError(MalformedReportError):
    """Raised when more than one device reports the same DUID."""
    pass


class DiskNotPresentError(BsdadmError):
    """Raised when a device path is required but the disk is not attached."""
    pass


class InvalidTransitionError(BsdadmError):
    """Raised when a mount stage transition would skip a stage."""
    pass


class CommandError(BsdadmError):
    """An external command failed.

    Attributes:
        args: Argument list that was executed
        returncode: Process exit status (127 when the executable is missing,
            126 when it cannot be started)
        output: Captured diagnostic output, if any was captured
    """

    label = "command"

    def __init__(self, args: Sequence[str], returncode: int, output: Optional[str] = None):
        self.command: List[str] = list(args)
        self.returncode = returncode
        self.output = output or ""
        super().__init__(self._format())

    def _format(self) -> str:
        cmdline = " ".join(self.command)
        message = f"{self.label}: command {cmdline!r} failed with exit status {self.returncode}"
        if self.output.strip():
            message += f"\n{self.output.rstrip()}"
        return message


class StatusCommandError(CommandError):
    label = "status query"


class AttachError(CommandError):
    label = "attach softraid"


class DetachError(CommandError):
    label = "detach softraid"


class FsckError(CommandError):
    label = "fsck"


class MountError(CommandError):
    label = "mount filesystem"


class UnmountError(CommandError):
    label = "unmount filesystem"


class RsyncError(CommandError):
    label = "snapshot"


class LogRotateError(BsdadmError):
    """Raised when a log file cannot be rotated."""
    pass


class SnapshotError(BsdadmError):
    """Raised when a snapshot directory layout is unusable."""
    pass
