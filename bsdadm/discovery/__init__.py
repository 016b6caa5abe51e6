"""System state detection from OpenBSD status reports."""
from bsdadm.discovery.disknames import DeviceLocator, DiskNameTable
from bsdadm.discovery.mounts import FilesystemStateDetector
from bsdadm.discovery.softraid import SoftraidStateDetector

__all__ = ['DiskNameTable', 'DeviceLocator', 'SoftraidStateDetector', 'FilesystemStateDetector']
