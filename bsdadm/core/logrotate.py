"""Size-triggered log file rotation.

``app.log`` becomes ``app.log.0`` and older archives shift up by one
(``app.log.0`` -> ``app.log.1``, ``app.log.1.gz`` -> ``app.log.2.gz``, ...).
"""
import glob
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from bsdadm.core.errors import LogRotateError
from bsdadm.core.logger import get_logger

logger = get_logger(__name__)

COMPRESSED_EXTENSIONS = (".gz",)


@dataclass(frozen=True)
class LogFile:
    """An archived log file name split into its parts."""
    name: str   # base name without number and compression extension
    num: int
    ext: str = ""

    @property
    def path(self) -> str:
        return f"{self.name}.{self.num}{self.ext}"

    def shifted(self) -> "LogFile":
        return LogFile(self.name, self.num + 1, self.ext)


def parse_log_file(filename: str) -> LogFile:
    """Split ``file.log.3.gz`` into ``LogFile('file.log', 3, '.gz')``.

    Raises:
        LogRotateError: If the name does not end in a number
    """
    stem, ext = os.path.splitext(filename)
    if ext not in COMPRESSED_EXTENSIONS:
        stem, ext = filename, ""

    name, number = os.path.splitext(stem)
    digits = number.lstrip(".")
    if not digits.isdecimal():
        raise LogRotateError(f"Cannot parse archive number in {filename!r}")
    return LogFile(name=name, num=int(digits), ext=ext)


class LogRotator:
    """Rotates a log file once it reaches a size threshold."""

    def archives(self, path: str) -> List[LogFile]:
        """Existing archives of ``path``, lowest number first."""
        names = glob.glob(glob.escape(path) + ".*")
        return sorted((parse_log_file(name) for name in names), key=lambda f: f.num)

    def is_ready(self, path: str, size: int) -> bool:
        try:
            current = os.stat(path).st_size
        except OSError as e:
            raise LogRotateError(f"Cannot stat {path}: {e}") from e
        if size <= 0:
            return False
        return current >= size

    def rotate(self, path: Union[str, Path], size: int, num: int = 0) -> bool:
        """Rotate ``path`` if it holds at least ``size`` bytes.

        Args:
            path: Active log file
            size: Rotation threshold in bytes (0 disables rotation)
            num: Maximum number of archives to keep (0 keeps all)

        Returns:
            True if the file was rotated
        """
        path = str(path)
        if not self.is_ready(path, size):
            logger.debug(f"{path} is not ready for rotation")
            return False

        for archive in reversed(self.archives(path)):
            if num > 0 and archive.num >= num - 1:
                continue
            target = archive.shifted()
            logger.debug(f"{archive.path!r} -> {target.path!r}")
            self._rename(archive.path, target.path)

        logger.debug(f"{path!r} -> {path + '.0'!r}")
        self._rename(path, path + ".0")

        logger.debug(f"Creating empty {path!r}")
        try:
            Path(path).touch(exist_ok=False)
        except OSError as e:
            raise LogRotateError(f"Cannot create {path}: {e}") from e
        return True

    @staticmethod
    def _rename(old: str, new: str) -> None:
        try:
            os.replace(old, new)
        except OSError as e:
            raise LogRotateError(f"Cannot rename {old} to {new}: {e}") from e
