"""Command-line interface for the spaces uploader.

Provides argument parsing and the main entry point for uploading,
downloading and cleaning up from the command line.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from rich.console import Console

from spaces_uploader.config import ConfigError, SpacesSettings, load_settings
from spaces_uploader.credentials import KeyManager
from spaces_uploader.logging_setup import setup_logging
from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus
from spaces_uploader.reporters import ConsoleReporter, JsonReporter, UploadReporter
from spaces_uploader.retry import RetryExhausted
from spaces_uploader.uploader import SpacesUploadManager, UploadError

logger = logging.getLogger(__name__)


class CompositeReporter(UploadReporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[UploadReporter]):
        self._reporters = reporters

    def on_progress(self, status: UploadStatus) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_progress(status)

    def on_failure(self, failure: UploadFailure) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_failure(failure)

    def on_upload_complete(self, result: UploadResult) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_upload_complete(result)

    def on_cleanup_complete(self, space_name: str, aborted: int) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_cleanup_complete(space_name, aborted)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="spaces-uploader",
        description="Upload large files to S3-compatible spaces as multipart uploads",
    )

    parser.add_argument(
        "-c", "--config",
        default="config.json",
        help="Path to configuration file (default: config.json)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-part progress output",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write a JSON summary to file",
    )

    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Log level (default: SPACES_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload a file")
    upload.add_argument("file", help="Path of the file to upload")
    upload.add_argument(
        "name",
        nargs="?",
        help="Object key to upload as (default: the file's base name)",
    )
    upload.add_argument(
        "--cleanup",
        action="store_true",
        help="Abort previous incomplete uploads in the space first",
    )
    upload.add_argument(
        "--max-part-retry",
        type=int,
        metavar="N",
        help="Attempts per part (default from config, else 3)",
    )
    upload.add_argument(
        "--max-part-size",
        type=int,
        metavar="BYTES",
        help="Maximum part size in bytes (default from config, else 6000000)",
    )

    subparsers.add_parser("cleanup", help="Abort incomplete uploads in the space")

    download = subparsers.add_parser("download", help="Download an uploaded object")
    download.add_argument("name", help="Object key to download")
    download.add_argument("destination", help="Local path to save to")

    return parser.parse_args(argv)


def create_reporters(args: argparse.Namespace) -> list[UploadReporter]:
    """Create reporters based on command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        List of configured reporters
    """
    reporters: list[UploadReporter] = [ConsoleReporter(quiet=args.quiet)]

    if args.json_output:
        reporters.append(JsonReporter(output_path=args.json_output))

    return reporters


def read_masked(console: Console, prompt: str, append, remove) -> None:
    """Read a secret one keystroke at a time into a KeyManager buffer.

    Falls back to a masked line read when stdin is not a POSIX terminal.
    """
    if os.name == "nt" or not sys.stdin.isatty():
        for char in console.input(prompt, password=True):
            append(char)
        return

    import termios
    import tty

    console.print(prompt, end="")
    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        while True:
            char = sys.stdin.read(1)
            if char in ("\r", "\n"):
                break
            if char == "\x03":
                raise KeyboardInterrupt
            if char in ("\x7f", "\b"):
                remove()
                continue
            append(char)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        console.print()


def build_credentials(settings: SpacesSettings, console: Console) -> KeyManager:
    """Build the KeyManager from settings, prompting for missing keys."""
    if settings.access_key and settings.secret_key:
        return KeyManager(settings.access_key, settings.secret_key)

    keys = KeyManager.empty()
    if settings.access_key:
        for char in settings.access_key:
            keys.append_access_char(char)
    else:
        read_masked(
            console, "Enter access key: ", keys.append_access_char, keys.remove_last_access_char
        )
    if settings.secret_key:
        for char in settings.secret_key:
            keys.append_secret_char(char)
    else:
        read_masked(
            console, "Enter secret key: ", keys.append_secret_char, keys.remove_last_secret_char
        )

    if not keys.is_complete:
        keys.dispose()
        raise ConfigError("Both an access key and a secret key are required")
    return keys


def run_upload(
    manager: SpacesUploadManager,
    args: argparse.Namespace,
    settings: SpacesSettings,
    reporter: UploadReporter,
) -> None:
    """Upload the requested file and report the result."""
    upload_name = args.name or os.path.basename(args.file)
    max_part_retry = settings.max_part_retry if args.max_part_retry is None else args.max_part_retry
    max_part_size = settings.max_part_size if args.max_part_size is None else args.max_part_size

    if args.cleanup:
        aborted = manager.cleanup_previous_attempts()
        reporter.on_cleanup_complete(manager.space_name, aborted)

    manager.upload_file(
        args.file,
        upload_name,
        max_part_retry=max_part_retry,
        max_part_size=max_part_size,
    )
    reporter.on_upload_complete(manager.last_result)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for operation failures, 2 for errors
    """
    args = parse_args(argv)
    setup_logging(args.log_level)
    console = Console(legacy_windows=True)

    try:
        settings = load_settings(args.config)
        credentials = build_credentials(settings, console)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    exit_code = 0
    with credentials:
        try:
            manager = SpacesUploadManager(
                credentials,
                settings.space_name,
                endpoint_url=settings.endpoint_url,
                region_name=settings.region_name,
                retry_delays=settings.retry_delays,
            )
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

        manager.attach_reporter(reporter)
        with manager:
            try:
                if args.command == "upload":
                    run_upload(manager, args, settings, reporter)
                elif args.command == "cleanup":
                    aborted = manager.cleanup_previous_attempts()
                    reporter.on_cleanup_complete(manager.space_name, aborted)
                elif args.command == "download":
                    written = manager.download_file(args.name, args.destination)
                    console.print(f"File downloaded to {args.destination} ({written})")
            except (ValueError, FileNotFoundError) as e:
                print(f"Error: {e}", file=sys.stderr)
                exit_code = 2
            except (UploadError, RetryExhausted) as e:
                print(f"Error: {e}", file=sys.stderr)
                exit_code = 1
            except Exception as e:
                logger.debug("Operation failed", exc_info=True)
                print(f"Error: {e}", file=sys.stderr)
                exit_code = 1

    for item in reporters:
        if isinstance(item, JsonReporter):
            item.finish()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
