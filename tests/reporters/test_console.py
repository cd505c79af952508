"""Tests for ConsoleReporter.

Tests the Rich-based console output reporter.
"""

from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from spaces_uploader.reporters.console import ConsoleReporter, format_bytes
from spaces_uploader.reporters.base import UploadReporter
from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus


def capture(reporter: ConsoleReporter) -> StringIO:
    """Point the reporter's console at a buffer."""
    buffer = StringIO()
    reporter.console = Console(file=buffer, width=200, legacy_windows=True)
    return buffer


class TestConsoleReporterInterface:
    """Tests that ConsoleReporter implements UploadReporter interface."""

    def test_inherits_from_reporter(self):
        assert isinstance(ConsoleReporter(), UploadReporter)


class TestConsoleReporterProgress:
    """Tests for on_progress method."""

    def test_prints_part_and_bytes(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_progress(UploadStatus(3, 2, 15_000_000, 15_000_000))

        output = buffer.getvalue()
        assert "Part 3/2" in output
        assert "15000000/15000000" in output

    def test_quiet_suppresses_progress(self):
        reporter = ConsoleReporter(quiet=True)

        with patch.object(reporter.console, "print") as mock_print:
            reporter.on_progress(UploadStatus(1, 1, 10, 10))

        mock_print.assert_not_called()


class TestConsoleReporterFailure:
    """Tests for on_failure method."""

    def test_prints_message_and_cause(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_failure(
            UploadFailure("Failed to upload part 2 on try #1", ConnectionError("reset"))
        )

        output = buffer.getvalue()
        assert "Failed to upload part 2 on try #1" in output
        assert "reset" in output

    def test_failures_shown_in_quiet_mode(self):
        reporter = ConsoleReporter(quiet=True)
        buffer = capture(reporter)

        reporter.on_failure(UploadFailure("Upload of key failed and was aborted"))

        assert "aborted" in buffer.getvalue()


class TestConsoleReporterSummary:
    """Tests for on_upload_complete and on_cleanup_complete."""

    def test_upload_summary_table(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_upload_complete(
            UploadResult(
                upload_id="upload-123",
                key="backups/big.iso",
                space_name="my-space",
                parts=3,
                total_bytes=15_000_000,
                duration_seconds=4.2,
            )
        )

        output = buffer.getvalue()
        assert "File upload complete in 4.2s" in output
        assert "my-space" in output
        assert "backups/big.iso" in output
        assert "upload-123" in output
        assert "14.3 MiB" in output

    def test_output_is_ascii_safe(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_upload_complete(UploadResult("id", "key", "space", 1, 10))
        reporter.on_progress(UploadStatus(1, 1, 10, 10))

        buffer.getvalue().encode("ascii")

    def test_cleanup_nothing_found(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_cleanup_complete("my-space", 0)

        assert "No previous attempts" in buffer.getvalue()

    def test_cleanup_count(self):
        reporter = ConsoleReporter()
        buffer = capture(reporter)

        reporter.on_cleanup_complete("my-space", 2)

        assert "Aborted 2 previous upload attempt(s) in my-space" in buffer.getvalue()


class TestFormatBytes:
    """Tests for format_bytes function."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (2048, "2.0 KiB"),
            (6_000_000, "5.7 MiB"),
            (3 * 1024 ** 3, "3.0 GiB"),
            (5 * 1024 ** 4, "5120.0 GiB"),
        ],
    )
    def test_formats(self, size, expected):
        assert format_bytes(size) == expected
