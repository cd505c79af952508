"""Console reporter using Rich library for formatted CLI output.

Displays upload progress line by line, failed attempts in yellow, and a
summary table once the upload completes.
"""

from rich import box
from rich.console import Console
from rich.table import Table

from spaces_uploader.reporters.base import UploadReporter
from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus


def format_bytes(size: int) -> str:
    """Format a byte count for display, e.g. 15000000 -> '14.3 MiB'."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


class ConsoleReporter(UploadReporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-part progress (failures and the
            summary are still shown)
    """

    def __init__(self, quiet: bool = False):
        """Initialize the console reporter.

        Args:
            quiet: Suppress per-part output if True
        """
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = Console(legacy_windows=True)
        self.quiet = quiet

    def on_progress(self, status: UploadStatus) -> None:
        """Print a progress line for the part."""
        if self.quiet:
            return

        self.console.print(
            f"File Upload Status: Part {status.part_number}/{status.estimated_parts} "
            f"[dim]({status.bytes_uploaded}/{status.total_bytes})[/dim]"
        )

    def on_failure(self, failure: UploadFailure) -> None:
        """Print the failure message and its cause."""
        self.console.print(f"[yellow]{failure.message}[/yellow]")
        if failure.exception is not None:
            self.console.print(f"   [dim]{failure.exception}[/dim]")

    def on_upload_complete(self, result: UploadResult) -> None:
        """Print a summary table for the finished upload."""
        table = Table(
            title="",
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Space", style="cyan", no_wrap=True)
        table.add_column("Key", no_wrap=True)
        table.add_column("Parts", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Upload ID", style="dim", no_wrap=True)

        table.add_row(
            result.space_name,
            result.key,
            str(result.parts),
            format_bytes(result.total_bytes),
            result.upload_id,
        )

        duration_str = ""
        if result.duration_seconds > 0:
            duration_str = f" in {result.duration_seconds:.1f}s"

        self.console.print()
        self.console.print(f"[bold green]File upload complete[/bold green]{duration_str}")
        self.console.print(table)

    def on_cleanup_complete(self, space_name: str, aborted: int) -> None:
        """Print how many stale uploads were aborted."""
        if aborted == 0:
            self.console.print(f"[dim]No previous attempts to clean up in {space_name}[/dim]")
        else:
            self.console.print(
                f"Aborted [bold]{aborted}[/bold] previous upload attempt(s) in {space_name}"
            )
