"""Disk identity and mount state models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from bsdadm.core.errors import DiskSpecError, InvalidTransitionError

DUID_LENGTH = 16
HEX_DIGITS = frozenset("0123456789abcdef")


@dataclass(frozen=True)
class DiskSpec:
    """A partition addressed by its disk DUID, e.g. ``a3a6acb427840bc0.a``."""
    identifier: str   # 16 lowercase hex characters
    partition: str    # single letter

    def __post_init__(self):
        validate_parts(self.identifier, self.partition)

    @classmethod
    def parse(cls, value: str) -> "DiskSpec":
        """Parse a ``DUID.PART`` string.

        Raises:
            DiskSpecError: If the value is not a valid disk specification
        """
        parts = value.split(".")
        if len(parts) < 2:
            raise DiskSpecError("missing partition spec")
        if len(parts) > 2:
            raise DiskSpecError("too many separators")
        return cls(parts[0], parts[1])

    def __str__(self) -> str:
        return f"{self.identifier}.{self.partition}"


def validate_parts(identifier: str, partition: str) -> None:
    if len(identifier) != DUID_LENGTH:
        raise DiskSpecError("bad DUID length")
    if not all(c in HEX_DIGITS for c in identifier):
        raise DiskSpecError("DUID not hexadecimal")
    if len(partition) != 1:
        raise DiskSpecError("bad partition spec length")
    if not ("a" <= partition <= "z"):
        raise DiskSpecError("bad partition spec")


@dataclass(frozen=True)
class MountRequest:
    """Everything one cryptmount invocation operates on."""
    physical: DiskSpec    # encrypted RAID partition attached to softraid
    logical: DiskSpec     # FFS partition on the decrypted volume
    target_dir: str
    mount_options: str = "-o softdep"

    @property
    def mount_args(self) -> List[str]:
        return self.mount_options.split()


@dataclass(frozen=True)
class AttachmentState:
    """Softraid attachment of a physical partition."""
    attached: bool
    logical_device: Optional[str] = None  # e.g. "sd3", only when attached

    @classmethod
    def unattached(cls) -> "AttachmentState":
        return cls(attached=False)


class MountState(Enum):
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"


class MountStage(Enum):
    """Ordered stages of a physical/logical disk pair.

    Transitions move one stage at a time in either direction.
    """
    UNATTACHED = 0
    ATTACHED = 1
    CHECKED = 2
    MOUNTED = 3

    @classmethod
    def derive(cls, attachment: AttachmentState, mount_state: MountState) -> "MountStage":
        """Observable stage; CHECKED only exists inside a mount sequence."""
        if mount_state is MountState.MOUNTED:
            return cls.MOUNTED
        if attachment.attached:
            return cls.ATTACHED
        return cls.UNATTACHED

    def can_transition(self, target: "MountStage") -> bool:
        return abs(self.value - target.value) == 1

    def transition(self, target: "MountStage") -> "MountStage":
        if not self.can_transition(target):
            raise InvalidTransitionError(
                f"Cannot move from {self.name.lower()} to {target.name.lower()}"
            )
        return target


@dataclass
class StageReport:
    """Snapshot of a disk pair used by ``cryptmount status``."""
    stage: MountStage
    physical_path: Optional[str]
    logical_path: Optional[str]
    attachment: AttachmentState = field(default_factory=AttachmentState.unattached)
