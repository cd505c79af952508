"""Multipart upload lifecycle management.

Handles one S3 multipart upload session:
- Plan the part boundaries for a file
- Initiate the upload
- Upload parts and track their ETags by part number
- Complete or abort the upload, exactly once
"""

import logging
from typing import Any, Iterator, Optional

from spaces_uploader.models import PartDescriptor, SessionState, UploadTarget

logger = logging.getLogger(__name__)

# Default maximum part size in bytes
DEFAULT_MAX_PART_SIZE = 6_000_000

# Default number of attempts per part
DEFAULT_MAX_PART_RETRY = 3

# Used when the MIME type of a file cannot be guessed
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def estimate_parts(file_length: int, max_part_size: int) -> int:
    """Estimate the number of parts for progress reporting.

    This is floor division, so it under-counts when the file is not an
    exact multiple of the part size. Never less than 1.
    """
    return max(1, file_length // max_part_size)


def plan_parts(file_length: int, max_part_size: int) -> Iterator[PartDescriptor]:
    """Split a file length into consecutive parts.

    Every part is max_part_size bytes except the last, which holds the
    remainder. An empty file yields a single zero-length last part.

    Args:
        file_length: Total size of the file in bytes.
        max_part_size: Maximum size of each part in bytes.

    Yields:
        PartDescriptor objects in part-number order.

    Raises:
        ValueError: If file_length is negative or max_part_size < 1.
    """
    if file_length < 0:
        raise ValueError("file_length must not be negative")
    if max_part_size < 1:
        raise ValueError("max_part_size must be >= 1")

    if file_length == 0:
        yield PartDescriptor(part_number=1, offset=0, length=0, is_last_part=True)
        return

    offset = 0
    part_number = 1
    while offset < file_length:
        length = min(max_part_size, file_length - offset)
        yield PartDescriptor(
            part_number=part_number,
            offset=offset,
            length=length,
            is_last_part=offset + length >= file_length,
        )
        offset += length
        part_number += 1


def read_part(file_obj: Any, part: PartDescriptor) -> bytes:
    """Read the bytes of a part from an open binary file."""
    file_obj.seek(part.offset)
    data = file_obj.read(part.length)
    if len(data) != part.length:
        raise IOError(
            f"Short read for part {part.part_number}: "
            f"expected {part.length} bytes, got {len(data)}"
        )
    return data


class MultipartUpload:
    """Manages the lifecycle of a single multipart upload.

    This class handles:
    - Initiating a multipart upload
    - Tracking uploaded parts and their ETags, keyed by part number
    - Completing or aborting the upload

    A session reaches exactly one terminal state. Once completed or aborted
    no further calls are accepted.
    """

    def __init__(self, s3_client: Any, target: UploadTarget):
        """Initialize the multipart upload manager.

        Args:
            s3_client: boto3 S3 client
            target: Space, key and content type to upload to
        """
        self.s3_client = s3_client
        self.target = target
        self.upload_id: Optional[str] = None
        self.state: Optional[SessionState] = None
        self.uploaded_parts: dict[int, str] = {}

    def initiate(self) -> str:
        """Initiate a new multipart upload.

        Returns:
            The upload ID for the new multipart upload.

        Raises:
            RuntimeError: If this session was already initiated.
            Exception: If the API call fails.
        """
        if self.state is not None:
            raise RuntimeError("Upload already initiated")

        response = self.s3_client.create_multipart_upload(
            Bucket=self.target.space_name,
            Key=self.target.key,
            ContentType=self.target.content_type,
        )
        self.upload_id = response["UploadId"]
        self.state = SessionState.INITIATED
        logger.info(
            "Initiated multipart upload %s for %s/%s",
            self.upload_id,
            self.target.space_name,
            self.target.key,
        )
        return self.upload_id

    def upload_part(self, part: PartDescriptor, data: bytes) -> str:
        """Upload one part and record its ETag.

        Args:
            part: The part being uploaded.
            data: The part's bytes.

        Returns:
            The ETag returned by the store.
        """
        self._require_state(SessionState.INITIATED, SessionState.UPLOADING)
        self.state = SessionState.UPLOADING

        response = self.s3_client.upload_part(
            Bucket=self.target.space_name,
            Key=self.target.key,
            UploadId=self.upload_id,
            PartNumber=part.part_number,
            Body=data,
        )
        etag = response["ETag"]
        self.add_part(part.part_number, etag)
        logger.debug(
            "Uploaded part %d (%d bytes) of %s", part.part_number, part.length, self.upload_id
        )
        return etag

    def add_part(self, part_number: int, etag: str) -> None:
        """Record a successfully uploaded part.

        Args:
            part_number: The 1-indexed part number.
            etag: The ETag returned by the provider.
        """
        self.uploaded_parts[part_number] = etag

    def get_uploaded_parts(self) -> list[dict]:
        """Get the uploaded parts ordered by part number.

        Returns:
            List of {"PartNumber", "ETag"} dicts as boto3 expects them.
        """
        return [
            {"PartNumber": part_number, "ETag": self.uploaded_parts[part_number]}
            for part_number in sorted(self.uploaded_parts)
        ]

    def missing_parts(self, expected_parts: int) -> list[int]:
        """Return part numbers in 1..expected_parts with no recorded ETag."""
        return [n for n in range(1, expected_parts + 1) if n not in self.uploaded_parts]

    def complete(self, expected_parts: int) -> dict:
        """Complete the multipart upload.

        Args:
            expected_parts: Number of parts the file was split into.

        Returns:
            The API response containing the final ETag.

        Raises:
            RuntimeError: If the upload is not in progress, or parts
                1..expected_parts are not all recorded.
            Exception: If the API call fails.
        """
        self._require_state(SessionState.INITIATED, SessionState.UPLOADING)

        missing = self.missing_parts(expected_parts)
        if missing or len(self.uploaded_parts) != expected_parts:
            raise RuntimeError(
                f"Cannot complete upload {self.upload_id}: parts are not contiguous "
                f"(missing {missing}, recorded {sorted(self.uploaded_parts)})"
            )

        self.state = SessionState.COMPLETING
        response = self.s3_client.complete_multipart_upload(
            Bucket=self.target.space_name,
            Key=self.target.key,
            UploadId=self.upload_id,
            MultipartUpload={"Parts": self.get_uploaded_parts()},
        )
        self.state = SessionState.COMPLETED
        logger.info("Completed multipart upload %s with %d parts", self.upload_id, expected_parts)
        return response

    def abort(self) -> None:
        """Abort the multipart upload, discarding any uploaded parts.

        The session is considered aborted even when the API call fails; the
        store may then still list the upload until a later cleanup.

        Raises:
            RuntimeError: If the upload was never initiated or is already
                in a terminal state.
            Exception: If the API call fails.
        """
        if self.state is None:
            raise RuntimeError("Upload not initiated")
        if self.state.is_terminal:
            raise RuntimeError(f"Upload {self.upload_id} is already {self.state.value}")

        self.state = SessionState.ABORTING
        try:
            self.s3_client.abort_multipart_upload(
                Bucket=self.target.space_name,
                Key=self.target.key,
                UploadId=self.upload_id,
            )
        finally:
            self.state = SessionState.ABORTED
        logger.info("Aborted multipart upload %s", self.upload_id)

    def _require_state(self, *allowed: SessionState) -> None:
        if self.state is None:
            raise RuntimeError("Upload not initiated")
        if self.state not in allowed:
            raise RuntimeError(f"Upload {self.upload_id} is {self.state.value}")
