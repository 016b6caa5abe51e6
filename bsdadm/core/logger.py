"""Logging for bsdadm with rich console output and optional file output."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

LOG_DIR = Path("/var/log/bsdadm")
LOG_FILE = LOG_DIR / "bsdadm.log"
FALLBACK_LOG_FILE = Path("/tmp/bsdadm.log")

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_file_handler: Optional[logging.FileHandler] = None


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Send bsdadm log records to a file as well as the console.

    Args:
        log_file: Path to log file (defaults to /var/log/bsdadm/bsdadm.log)
        verbose: Enable debug-level logging

    Returns:
        Path of the log file actually in use

    Note:
        Falls back to /tmp/bsdadm.log when the default directory is not
        writable. An explicitly requested file is never redirected.
    """
    global _file_handler

    target = Path(log_file) if log_file else LOG_FILE
    root_logger = logging.getLogger("bsdadm")

    if _file_handler is not None:
        if Path(_file_handler.baseFilename) == target.resolve():
            return target
        root_logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target)
    except PermissionError:
        if log_file:
            raise
        target = FALLBACK_LOG_FILE
        handler = logging.FileHandler(target)

    level = logging.DEBUG if verbose else logging.INFO
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    _file_handler = handler

    root_logger.debug(f"bsdadm logging initialized: {target}")
    return target


def set_verbose(verbose: bool) -> None:
    """Switch the bsdadm logger tree between INFO and DEBUG."""
    logging.getLogger("bsdadm").setLevel(logging.DEBUG if verbose else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes to the shared rich console.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger with a RichHandler attached

    Note:
        File logging is enabled separately via setup_file_logging()
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        package_logger = logging.getLogger("bsdadm")
        if package_logger.level == logging.NOTSET:
            package_logger.setLevel(logging.INFO)

    return logger
