"""External command execution for bsdadm.

Status queries capture their output; mutating commands inherit the
terminal so tools like bioctl can prompt for a passphrase.
"""
import subprocess
from typing import Iterator, Sequence, Type

from bsdadm.core.config import mock_from_env
from bsdadm.core.errors import CommandError, StatusCommandError
from bsdadm.core.logger import get_logger

logger = get_logger(__name__)

MISSING_COMMAND_STATUS = 127
UNUSABLE_COMMAND_STATUS = 126


def launch_status(error: OSError) -> int:
    """Shell-style exit status for a command that could not be started."""
    if isinstance(error, FileNotFoundError):
        return MISSING_COMMAND_STATUS
    return UNUSABLE_COMMAND_STATUS


class CommandRunner:
    """Runs external commands and turns failures into CommandError subclasses."""

    def __init__(self, mock: bool = False):
        self.mock = mock or mock_from_env()

    def query(self, args: Sequence[str]) -> str:
        """Run a read-only status command and return its standard output.

        Status queries run even in mock mode.

        Raises:
            StatusCommandError: On nonzero exit, or when anything is written
                to standard error despite a zero exit status
        """
        args = list(args)
        logger.debug(f"Query: {' '.join(args)}")
        try:
            result = subprocess.run(args, capture_output=True, text=True)
        except OSError as e:
            raise StatusCommandError(args, launch_status(e), str(e)) from e

        if result.returncode != 0:
            raise StatusCommandError(args, result.returncode, result.stdout + result.stderr)
        if result.stderr.strip():
            raise StatusCommandError(args, result.returncode, result.stderr)
        return result.stdout

    def run(self, args: Sequence[str], error: Type[CommandError] = CommandError) -> None:
        """Run a mutating command attached to the caller's terminal.

        Args:
            args: Command and arguments
            error: CommandError subclass raised on failure
        """
        args = list(args)
        cmdline = " ".join(args)

        if self.mock:
            logger.info(f"MOCK: Would run '{cmdline}'")
            return

        logger.info(f"Running '{cmdline}'")
        try:
            result = subprocess.run(args)
        except OSError as e:
            raise error(args, launch_status(e), str(e)) from e

        if result.returncode != 0:
            raise error(args, result.returncode)

    def stream(self, args: Sequence[str], error: Type[CommandError] = CommandError) -> Iterator[str]:
        """Run a mutating command and yield its standard output line by line.

        Standard error stays attached to the terminal. Nothing is yielded in
        mock mode.
        """
        args = list(args)
        cmdline = " ".join(args)

        if self.mock:
            logger.info(f"MOCK: Would run '{cmdline}'")
            return

        logger.info(f"Running '{cmdline}'")
        try:
            proc = subprocess.Popen(args, stdout=subprocess.PIPE, text=True)
        except OSError as e:
            raise error(args, launch_status(e), str(e)) from e

        with proc:
            for line in proc.stdout:
                yield line.rstrip("\n")
        if proc.returncode != 0:
            raise error(args, proc.returncode)
