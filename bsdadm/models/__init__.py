"""Data models for bsdadm."""
from bsdadm.models.disk import (
    AttachmentState,
    DiskSpec,
    MountRequest,
    MountStage,
    MountState,
    StageReport,
)

__all__ = [
    'AttachmentState',
    'DiskSpec',
    'MountRequest',
    'MountStage',
    'MountState',
    'StageReport',
]
