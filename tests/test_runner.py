"""Tests for external command execution."""
import logging
import sys

import pytest

from bsdadm.core.errors import CommandError, FsckError, RsyncError, StatusCommandError
from bsdadm.core.runner import MISSING_COMMAND_STATUS, UNUSABLE_COMMAND_STATUS, CommandRunner


def python(code):
    return [sys.executable, "-c", code]


def not_executable(tmp_path):
    script = tmp_path / "tool"
    script.write_text("#!/bin/sh\n")
    script.chmod(0o644)
    return [str(script)]


@pytest.fixture(autouse=True)
def no_mock_env(monkeypatch):
    monkeypatch.delenv("BSDADM_MOCK", raising=False)


class TestQuery:
    """Test status queries."""

    def test_returns_stdout(self):
        assert CommandRunner().query(python("print('hw.disknames=sd0:abc')")) == "hw.disknames=sd0:abc\n"

    def test_nonzero_exit(self):
        """Exit status and both output streams end up in the error."""
        code = "import sys; print('partial'); sys.stderr.write('broken\\n'); sys.exit(2)"

        with pytest.raises(StatusCommandError) as exc_info:
            CommandRunner().query(python(code))

        assert exc_info.value.returncode == 2
        assert "partial" in exc_info.value.output
        assert "broken" in exc_info.value.output

    def test_stderr_with_zero_exit(self):
        """Diagnostics on stderr fail the query even when the exit status is 0."""
        code = "import sys; print('ok'); sys.stderr.write('warning: odd\\n')"

        with pytest.raises(StatusCommandError) as exc_info:
            CommandRunner().query(python(code))

        assert exc_info.value.returncode == 0
        assert "warning: odd" in str(exc_info.value)

    def test_missing_executable(self):
        with pytest.raises(StatusCommandError) as exc_info:
            CommandRunner().query(["/nonexistent/bsdadm-test-command"])

        assert exc_info.value.returncode == MISSING_COMMAND_STATUS

    def test_unusable_executable(self, tmp_path):
        """A file that cannot be executed fails like a command, not a crash."""
        with pytest.raises(StatusCommandError) as exc_info:
            CommandRunner().query(not_executable(tmp_path))

        assert exc_info.value.returncode == UNUSABLE_COMMAND_STATUS

    def test_runs_in_mock_mode(self):
        """Queries are read-only and still execute in mock mode."""
        assert CommandRunner(mock=True).query(python("print('real')")) == "real\n"


class TestRun:
    """Test mutating commands."""

    def test_success(self):
        CommandRunner().run(python("pass"))

    def test_failure_raises_given_error(self):
        with pytest.raises(FsckError) as exc_info:
            CommandRunner().run(python("import sys; sys.exit(8)"), FsckError)

        assert exc_info.value.returncode == 8
        assert exc_info.value.command[0] == sys.executable
        assert str(exc_info.value).startswith("fsck: command")

    def test_default_error_type(self):
        with pytest.raises(CommandError):
            CommandRunner().run(python("import sys; sys.exit(1)"))

    def test_mock_does_not_execute(self, tmp_path, caplog):
        """Mock mode logs the command instead of running it."""
        marker = tmp_path / "ran"

        with caplog.at_level(logging.INFO, logger="bsdadm"):
            CommandRunner(mock=True).run(python(f"open({str(marker)!r}, 'w').close()"))

        assert not marker.exists()
        assert "MOCK: Would run" in caplog.text

    def test_unusable_executable(self, tmp_path):
        with pytest.raises(FsckError) as exc_info:
            CommandRunner().run(not_executable(tmp_path), FsckError)

        assert exc_info.value.returncode == UNUSABLE_COMMAND_STATUS

    def test_mock_from_environment(self, monkeypatch):
        monkeypatch.setenv("BSDADM_MOCK", "1")

        assert CommandRunner().mock is True


class TestStream:
    """Test line-streamed commands."""

    def test_yields_lines(self):
        lines = list(CommandRunner().stream(python("print('one'); print('two')")))

        assert lines == ["one", "two"]

    def test_failure_after_output(self):
        """Lines are delivered before the exit status is checked."""
        received = []

        with pytest.raises(RsyncError) as exc_info:
            for line in CommandRunner().stream(python("import sys; print('sent'); sys.exit(23)"), RsyncError):
                received.append(line)

        assert received == ["sent"]
        assert exc_info.value.returncode == 23

    def test_unusable_executable(self, tmp_path):
        with pytest.raises(RsyncError) as exc_info:
            list(CommandRunner().stream(not_executable(tmp_path), RsyncError))

        assert exc_info.value.returncode == UNUSABLE_COMMAND_STATUS

    def test_mock_yields_nothing(self):
        assert list(CommandRunner(mock=True).stream(python("print('x')"))) == []
