"""Attach/check/mount and unmount/detach sequencing for softraid CRYPTO volumes.

A physical/logical disk pair moves through the stages

    UNATTACHED -> ATTACHED -> CHECKED -> MOUNTED

one stage at a time. Every step first asks the system whether it is already
done, so running a sequence twice performs no mutating command the second
time. Failures are not rolled back: a disk attached before a failed fsck
stays attached for the operator to inspect.
"""
from typing import Optional

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.errors import (
    AttachError,
    DetachError,
    DiskNotPresentError,
    FsckError,
    MountError,
    UnmountError,
)
from bsdadm.core.logger import get_logger
from bsdadm.core.runner import CommandRunner
from bsdadm.discovery.disknames import DeviceLocator, DiskNameTable
from bsdadm.discovery.mounts import FilesystemStateDetector
from bsdadm.discovery.softraid import SoftraidStateDetector
from bsdadm.models.disk import (
    AttachmentState,
    DiskSpec,
    MountRequest,
    MountStage,
    MountState,
    StageReport,
)

logger = get_logger(__name__)


class MountOrchestrator:
    """Drives one encrypted disk pair between unattached and mounted."""

    def __init__(self, runner: Optional[CommandRunner] = None, config: Optional[BsdadmConfig] = None):
        self.runner = runner or CommandRunner()
        self.config = config or BsdadmConfig()
        self.table = DiskNameTable(self.runner, self.config)
        self.locator = DeviceLocator(self.table)
        self.softraid = SoftraidStateDetector(self.runner, self.locator, self.config)
        self.filesystems = FilesystemStateDetector(self.runner, self.locator, self.config)

    @property
    def mock(self) -> bool:
        return getattr(self.runner, "mock", False)

    # -----------------------------
    #  Sequences
    # -----------------------------
    def status(self, request: MountRequest) -> StageReport:
        """Read-only snapshot of where the disk pair currently stands."""
        attachment = self.softraid.is_attached(request.physical)
        mount_state = self.filesystems.mount_state(request.logical, request.target_dir)
        return StageReport(
            stage=MountStage.derive(attachment, mount_state),
            physical_path=self.locator.locate(request.physical),
            logical_path=self.locator.locate(request.logical),
            attachment=attachment,
        )

    def mount(self, request: MountRequest) -> MountStage:
        """Attach, check and mount; each stage is skipped when already reached.

        Returns:
            The stage reached. In mock mode nothing changes, so this is the
            stage observed before the run.

        Raises:
            DiskNotPresentError: If a disk needed for the next step is absent
            AttachError, FsckError, MountError: If the external command fails
        """
        attachment = self.softraid.is_attached(request.physical)
        observed = MountStage.derive(attachment, MountState.UNMOUNTED)
        if attachment.attached:
            logger.warning(
                f"attach softraid: {request.physical} already attached as {attachment.logical_device}"
            )
            stage = MountStage.ATTACHED
        else:
            stage = self.attach(request.physical, MountStage.UNATTACHED)

        if self.filesystems.is_mounted(request.logical, request.target_dir):
            # fsck must not touch a live filesystem
            logger.warning(
                f"mount filesystem: {request.logical} already mounted on {request.target_dir}, "
                f"skipping fsck"
            )
            return MountStage.MOUNTED

        if self.mock and self.locator.locate(request.logical) is None:
            logger.info(f"MOCK: {request.logical} appears only after a real attach, stopping here")
            return observed

        stage = self.check(request.logical, stage)
        stage = self.mount_filesystem(request, stage)
        return observed if self.mock else stage

    def unmount(self, request: MountRequest) -> MountStage:
        """Unmount then detach; each stage is skipped when already undone.

        Returns:
            MountStage.UNATTACHED, or in mock mode the stage observed
            before the run

        Raises:
            UnmountError, DetachError: If the external command fails
        """
        mounted = self.filesystems.is_mounted(request.logical, request.target_dir)
        if mounted:
            stage = self.unmount_filesystem(request, MountStage.MOUNTED)
            stage = self._advance(stage, MountStage.ATTACHED)
        else:
            logger.warning(
                f"unmount filesystem: {request.logical} already unmounted from {request.target_dir}"
            )
            stage = MountStage.ATTACHED

        attachment = self.softraid.is_attached(request.physical)
        if attachment.attached:
            stage = self.detach(attachment, stage)
        else:
            logger.warning(f"detach softraid: {request.physical} already detached")
            stage = MountStage.UNATTACHED

        if self.mock:
            # mutating commands were only logged
            mount_state = MountState.MOUNTED if mounted else MountState.UNMOUNTED
            return MountStage.derive(attachment, mount_state)
        return stage

    # -----------------------------
    #  Individual steps
    # -----------------------------
    def attach(self, physical: DiskSpec, stage: MountStage) -> MountStage:
        """Attach the encrypted partition; bioctl prompts for the passphrase."""
        device = self._require_path(physical, "attach softraid")
        self.runner.run(
            [self.config.bioctl_command, "-c", "C", "-l", device, self.config.softraid_device],
            AttachError,
        )
        return self._advance(stage, MountStage.ATTACHED)

    def check(self, logical: DiskSpec, stage: MountStage) -> MountStage:
        device = self._require_path(logical, "fsck")
        self.runner.run([self.config.fsck_command, "-p", device], FsckError)
        return self._advance(stage, MountStage.CHECKED)

    def mount_filesystem(self, request: MountRequest, stage: MountStage) -> MountStage:
        device = self._require_path(request.logical, "mount filesystem")
        self.runner.run(
            [self.config.mount_command, *request.mount_args, device, request.target_dir],
            MountError,
        )
        return self._advance(stage, MountStage.MOUNTED)

    def unmount_filesystem(self, request: MountRequest, stage: MountStage) -> MountStage:
        device = self._require_path(request.logical, "unmount filesystem")
        self.runner.run([self.config.umount_command, device], UnmountError)
        return self._advance(stage, MountStage.CHECKED)

    def detach(self, attachment: AttachmentState, stage: MountStage) -> MountStage:
        self.runner.run(
            [self.config.bioctl_command, "-d", attachment.logical_device],
            DetachError,
        )
        return self._advance(stage, MountStage.UNATTACHED)

    # -----------------------------
    #  Helpers
    # -----------------------------
    def _require_path(self, spec: DiskSpec, action: str) -> str:
        device = self.locator.locate(spec)
        if device is None:
            raise DiskNotPresentError(f"{action}: disk not present: {spec}")
        return device

    @staticmethod
    def _advance(stage: MountStage, target: MountStage) -> MountStage:
        stage = stage.transition(target)
        logger.debug(f"Stage: {stage.name.lower()}")
        return stage
