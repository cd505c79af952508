"""JSON reporter for structured output.

Collects the events of a run and writes a single JSON document, suitable
for scripts that need the upload id and the failure history.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from spaces_uploader.reporters.base import UploadReporter
from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus


class JsonReporter(UploadReporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write JSON output
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path
        self._last_status: Optional[UploadStatus] = None
        self._failures: list[UploadFailure] = []
        self._result: Optional[UploadResult] = None
        self._cleanup: Optional[dict] = None

    def on_progress(self, status: UploadStatus) -> None:
        """Keep only the latest progress snapshot."""
        self._last_status = status

    def on_failure(self, failure: UploadFailure) -> None:
        self._failures.append(failure)

    def on_upload_complete(self, result: UploadResult) -> None:
        self._result = result

    def on_cleanup_complete(self, space_name: str, aborted: int) -> None:
        self._cleanup = {"space": space_name, "aborted": aborted}

    def finish(self) -> dict:
        """Generate the output and write it if a path was given.

        Returns:
            The generated JSON data as a dictionary
        """
        output = self._generate_output()

        if self.output_path:
            self._write_to_file(output)

        return output

    def _generate_output(self) -> dict:
        """Generate the JSON output structure."""
        output: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "success" if self._result is not None else "failed",
            "failures": [
                {
                    "message": failure.message,
                    "error": str(failure.exception) if failure.exception else None,
                }
                for failure in self._failures
            ],
        }

        if self._result is not None:
            output["upload"] = {
                "upload_id": self._result.upload_id,
                "space": self._result.space_name,
                "key": self._result.key,
                "parts": self._result.parts,
                "total_bytes": self._result.total_bytes,
                "duration_seconds": self._result.duration_seconds,
            }

        if self._last_status is not None:
            output["progress"] = {
                "part_number": self._last_status.part_number,
                "estimated_parts": self._last_status.estimated_parts,
                "bytes_uploaded": self._last_status.bytes_uploaded,
                "total_bytes": self._last_status.total_bytes,
            }

        if self._cleanup is not None:
            output["cleanup"] = self._cleanup

        return output

    def _write_to_file(self, output: dict) -> None:
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.output_path, "w") as f:
            json.dump(output, f, indent=2)
