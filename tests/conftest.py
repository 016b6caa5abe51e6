"""Shared test fixtures for bsdadm tests."""
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Union

import pytest

from bsdadm.core.config import BsdadmConfig
from bsdadm.core.errors import StatusCommandError

DISKNAMES = "hw.disknames=sd0:e072adf1dcc1be16,cd0:,sd1:4a9f12a79235b9bd\n"
DISKNAMES_ATTACHED = (
    "hw.disknames=sd0:e072adf1dcc1be16,cd0:,sd1:4a9f12a79235b9bd,sd2:a3a6acb427840bc0\n"
)

# bioctl prints nothing, not even its header, while no volume exists
BIOCTL_EMPTY = ""
BIOCTL_ATTACHED = """\
Volume      Status               Size Device
softraid0 0 Online        2000396018176 sd2     CRYPTO
          0 Online        2000396018176 1:0.0   noencl <sd1a>
"""

MOUNT_TABLE = """\
/dev/sd0a on / type ffs (local)
/dev/sd0e on /home type ffs (local, nodev, nosuid)
"""
MOUNT_TABLE_MOUNTED = MOUNT_TABLE + "/dev/sd2d on /backup type ffs (local, softdep)\n"

Response = Union[str, Callable[[], str], Exception]


class FakeRunner:
    """Stands in for CommandRunner: canned query output, recorded calls.

    ``responses`` maps a command name (``sysctl``, ``bioctl``, ``mount``) to
    report text, a callable producing it, or an exception to raise.
    """

    def __init__(self, responses: Optional[Dict[str, Response]] = None, mock: bool = False):
        self.responses: Dict[str, Response] = dict(responses or {})
        self.mock = mock
        self.queries: List[List[str]] = []
        self.commands: List[List[str]] = []
        self.failures: Dict[str, Exception] = {}
        self.on_run: Dict[str, Callable[[List[str]], None]] = {}
        self.stream_lines: List[str] = []

    def query(self, args) -> str:
        args = list(args)
        self.queries.append(args)
        response = self.responses.get(args[0])
        if response is None:
            raise StatusCommandError(args, 1, f"no canned output for {args[0]}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response

    def run(self, args, error=None) -> None:
        args = list(args)
        if self.mock:
            return
        self.commands.append(args)
        self._fail_if_requested(args)
        cmdline = " ".join(args)
        for prefix, hook in self.on_run.items():
            if cmdline.startswith(prefix):
                hook(args)

    def stream(self, args, error=None):
        args = list(args)
        if self.mock:
            return
        self.commands.append(args)
        self._fail_if_requested(args)
        yield from self.stream_lines

    def _fail_if_requested(self, args) -> None:
        cmdline = " ".join(args)
        for prefix, exc in self.failures.items():
            if cmdline.startswith(prefix):
                raise exc


def simulate_system(runner: FakeRunner) -> FakeRunner:
    """Make mutating commands change what later status queries report."""
    def attach(args):
        runner.responses["sysctl"] = DISKNAMES_ATTACHED
        runner.responses["bioctl"] = BIOCTL_ATTACHED

    def detach(args):
        runner.responses["sysctl"] = DISKNAMES
        runner.responses["bioctl"] = BIOCTL_EMPTY

    def mount(args):
        runner.responses["mount"] = MOUNT_TABLE_MOUNTED

    def umount(args):
        runner.responses["mount"] = MOUNT_TABLE

    runner.on_run.update({
        "bioctl -c C": attach,
        "bioctl -d": detach,
        "mount ": mount,
        "umount ": umount,
    })
    return runner


@pytest.fixture
def reports():
    """Canned sysctl, bioctl and mount output."""
    return SimpleNamespace(
        disknames=DISKNAMES,
        disknames_attached=DISKNAMES_ATTACHED,
        bioctl_empty=BIOCTL_EMPTY,
        bioctl_attached=BIOCTL_ATTACHED,
        mount_table=MOUNT_TABLE,
        mount_table_mounted=MOUNT_TABLE_MOUNTED,
    )


@pytest.fixture
def make_runner():
    """Factory for fake runners with custom responses."""
    def make(responses: Optional[Dict[str, Response]] = None, mock: bool = False) -> FakeRunner:
        return FakeRunner(responses, mock=mock)
    return make


@pytest.fixture
def simulate():
    """Install hooks so mutating commands update later status reports."""
    return simulate_system


@pytest.fixture
def config():
    """Default settings, independent of the environment."""
    return BsdadmConfig()


@pytest.fixture
def detached_runner():
    """Physical disk sd1 plugged in, nothing attached or mounted."""
    return FakeRunner({
        "sysctl": DISKNAMES,
        "bioctl": BIOCTL_EMPTY,
        "mount": MOUNT_TABLE,
    })


@pytest.fixture
def attached_runner():
    """sd1a attached as sd2, nothing mounted."""
    return FakeRunner({
        "sysctl": DISKNAMES_ATTACHED,
        "bioctl": BIOCTL_ATTACHED,
        "mount": MOUNT_TABLE,
    })


@pytest.fixture
def mounted_runner():
    """sd1a attached as sd2, sd2d mounted on /backup."""
    return FakeRunner({
        "sysctl": DISKNAMES_ATTACHED,
        "bioctl": BIOCTL_ATTACHED,
        "mount": MOUNT_TABLE_MOUNTED,
    })
