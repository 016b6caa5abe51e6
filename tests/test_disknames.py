"""Tests for DUID resolution from hw.disknames."""
import pytest

from bsdadm.core.errors import DuplicateDiskError, MalformedReportError, StatusCommandError
from bsdadm.discovery.disknames import DeviceLocator, DiskNameTable, parse_disknames
from bsdadm.models.disk import DiskSpec


class TestParseDisknames:
    """Test parsing of the raw report."""

    def test_entries(self, reports):
        """Report splits into device/DUID pairs, empty DUIDs included."""
        assert parse_disknames(reports.disknames) == [
            ("sd0", "e072adf1dcc1be16"),
            ("cd0", ""),
            ("sd1", "4a9f12a79235b9bd"),
        ]

    @pytest.mark.parametrize("report", [
        "sd0:e072adf1dcc1be16",
        "hw.disknames=sd0=e072adf1dcc1be16",
        "hw.disknames=sd0:e072adf1dcc1be16,cd0",
        "hw.disknames=sd0:e072:adf1dcc1be16",
    ])
    def test_malformed(self, report):
        """Missing '=' or entries without exactly one ':' are rejected."""
        with pytest.raises(MalformedReportError):
            parse_disknames(report)


class TestDiskNameTable:
    """Test DUID lookups."""

    def test_resolve(self, detached_runner):
        """Known DUIDs resolve to their kernel device names."""
        table = DiskNameTable(detached_runner)

        assert table.resolve("e072adf1dcc1be16") == "sd0"
        assert table.resolve("4a9f12a79235b9bd") == "sd1"

    def test_absent_disk(self, detached_runner):
        """Unknown DUID is not an error."""
        assert DiskNameTable(detached_runner).resolve("ffffffffffffffff") is None

    def test_queries_every_time(self, detached_runner):
        """Each lookup re-reads the report."""
        table = DiskNameTable(detached_runner)

        table.resolve("e072adf1dcc1be16")
        table.resolve("e072adf1dcc1be16")

        assert detached_runner.queries == [["sysctl", "hw.disknames"]] * 2

    def test_report_changes_between_queries(self, detached_runner):
        """A disk plugged in later is found on the next lookup."""
        table = DiskNameTable(detached_runner)
        assert table.resolve("a3a6acb427840bc0") is None

        detached_runner.responses["sysctl"] = "hw.disknames=sd0:e072adf1dcc1be16,sd3:a3a6acb427840bc0\n"

        assert table.resolve("a3a6acb427840bc0") == "sd3"

    def test_duplicate_duid(self, make_runner):
        """Two devices claiming one DUID fail loudly."""
        runner = make_runner({"sysctl": "hw.disknames=sd0:e072adf1dcc1be16,sd4:e072adf1dcc1be16\n"})

        with pytest.raises(DuplicateDiskError) as exc_info:
            DiskNameTable(runner).resolve("e072adf1dcc1be16")

        assert "sd0" in str(exc_info.value)
        assert "sd4" in str(exc_info.value)

    def test_malformed_report_is_not_absence(self, make_runner):
        """A broken report raises instead of reporting the disk absent."""
        table = DiskNameTable(make_runner({"sysctl": "garbage\n"}))

        with pytest.raises(MalformedReportError):
            table.resolve("e072adf1dcc1be16")

    def test_query_failure_propagates(self, make_runner):
        """sysctl failures surface unchanged."""
        error = StatusCommandError(["sysctl", "hw.disknames"], 0, "sysctl: permission denied")
        table = DiskNameTable(make_runner({"sysctl": error}))

        with pytest.raises(StatusCommandError) as exc_info:
            table.resolve("e072adf1dcc1be16")

        assert "permission denied" in str(exc_info.value)


class TestDeviceLocator:
    """Test device path construction."""

    def test_locate(self, detached_runner):
        """DUID plus partition becomes a /dev path."""
        locator = DeviceLocator(DiskNameTable(detached_runner))

        assert locator.locate(DiskSpec.parse("e072adf1dcc1be16.a")) == "/dev/sd0a"
        assert locator.device_name(DiskSpec.parse("4a9f12a79235b9bd.d")) == "sd1d"

    def test_locate_absent(self, detached_runner):
        """Absent disk yields None and only the sysctl query runs."""
        locator = DeviceLocator(DiskNameTable(detached_runner))

        assert locator.locate(DiskSpec.parse("ffffffffffffffff.a")) is None
        assert detached_runner.queries == [["sysctl", "hw.disknames"]]
        assert detached_runner.commands == []
