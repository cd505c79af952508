"""Upload manager for S3-compatible spaces.

Coordinates:
- Segmenting a file into parts and uploading them one at a time
- Per-part retries with failure events
- All-or-nothing completion, aborting the session on any failure
- Cleanup of multipart uploads left behind by earlier runs
- Downloading uploaded objects through presigned URLs
"""

import logging
import mimetypes
import os
import tempfile
import time
from typing import Optional, Sequence

import httpx

from spaces_uploader.credentials import KeyManager
from spaces_uploader.events import EventChannel
from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus, UploadTarget
from spaces_uploader.multipart import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_PART_RETRY,
    DEFAULT_MAX_PART_SIZE,
    MultipartUpload,
    estimate_parts,
    plan_parts,
    read_part,
)
from spaces_uploader.retry import RetryExhausted, retry_attempts, retry_with_backoff
from spaces_uploader.s3_client import s3_client_scope

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://nyc3.digitaloceanspaces.com"

# Streaming chunk size for downloads: 1 MiB
DOWNLOAD_CHUNK_SIZE = 1024 * 1024


class UploadError(Exception):
    """Raised when an upload session fails and has been aborted."""

    def __init__(self, message: str, upload_id: Optional[str] = None):
        super().__init__(message)
        self.upload_id = upload_id


class PartUploadError(UploadError):
    """Raised when a part could not be uploaded within its attempt limit."""

    def __init__(
        self,
        part_number: int,
        attempts: int,
        upload_id: Optional[str] = None,
    ):
        super().__init__(f"Unable to upload part {part_number}", upload_id=upload_id)
        self.part_number = part_number
        self.attempts = attempts


def guess_content_type(file_path: str) -> str:
    """Guess a file's MIME type, falling back to application/octet-stream."""
    content_type, _ = mimetypes.guess_type(file_path)
    return content_type or DEFAULT_CONTENT_TYPE


class SpacesUploadManager:
    """Uploads files to a space as multipart uploads.

    Progress and failures are published on two event channels,
    ``progress_events`` (UploadStatus) and ``failure_events``
    (UploadFailure). Failure events are informational; errors are always
    raised to the caller as well. ``last_result`` holds the summary of the
    most recent successful upload.

    Each operation builds its own S3 client and closes it before returning.
    """

    def __init__(
        self,
        credentials: KeyManager,
        space_name: str,
        endpoint_url: str = DEFAULT_ENDPOINT,
        region_name: Optional[str] = None,
        retry_delays: Sequence[float] = (),
    ):
        """Initialize the upload manager.

        Args:
            credentials: Key holder used to build clients.
            space_name: Space (bucket) to operate on.
            endpoint_url: Service endpoint URL.
            region_name: Optional region passed to boto3.
            retry_delays: Seconds to wait between part attempts.

        Raises:
            ValueError: If credentials are missing or space_name or
                endpoint_url is empty.
        """
        if credentials is None:
            raise ValueError("credentials must not be None")
        if not space_name:
            raise ValueError("space_name must not be empty")
        if not endpoint_url:
            raise ValueError("endpoint_url must not be empty")

        self.credentials = credentials
        self.space_name = space_name
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.retry_delays = tuple(retry_delays)
        self.progress_events: EventChannel[UploadStatus] = EventChannel("progress")
        self.failure_events: EventChannel[UploadFailure] = EventChannel("failure")
        self._owns_credentials = False
        self.last_result: Optional[UploadResult] = None
        self._closed = False

    @classmethod
    def from_keys(
        cls,
        access_key: str,
        secret_key: str,
        space_name: str,
        endpoint_url: str = DEFAULT_ENDPOINT,
        **kwargs,
    ) -> "SpacesUploadManager":
        """Build a manager that owns a KeyManager made from plaintext keys.

        The keys are wiped when the manager is closed.
        """
        credentials = KeyManager(access_key, secret_key)
        try:
            manager = cls(credentials, space_name, endpoint_url, **kwargs)
        except ValueError:
            credentials.dispose()
            raise
        manager._owns_credentials = True
        return manager

    def attach_reporter(self, reporter) -> None:
        """Subscribe a reporter's on_progress and on_failure handlers."""
        self.progress_events.subscribe(reporter.on_progress)
        self.failure_events.subscribe(reporter.on_failure)

    def cleanup_previous_attempts(self) -> int:
        """Abort every in-flight multipart upload in the space.

        Individual abort failures are logged and reported as failure
        events, then skipped. A failure to list uploads is raised.

        Returns:
            The number of uploads successfully aborted.
        """
        self._check_open()
        aborted = 0

        with s3_client_scope(self.credentials, self.endpoint_url, self.region_name) as client:
            paginator = client.get_paginator("list_multipart_uploads")
            stale = []
            for page in paginator.paginate(Bucket=self.space_name):
                stale.extend(page.get("Uploads", []))

            logger.info("Found %d stale multipart uploads in %s", len(stale), self.space_name)

            for upload in stale:
                key = upload["Key"]
                upload_id = upload["UploadId"]
                try:
                    client.abort_multipart_upload(
                        Bucket=self.space_name,
                        Key=key,
                        UploadId=upload_id,
                    )
                    aborted += 1
                except Exception as e:
                    logger.warning("Could not abort stale upload %s (%s): %s", upload_id, key, e)
                    self.failure_events.emit(
                        UploadFailure(f"Failed to abort stale upload {upload_id} for {key}", e)
                    )

        return aborted

    def upload_file(
        self,
        file_path: str,
        upload_name: str,
        max_part_retry: int = DEFAULT_MAX_PART_RETRY,
        max_part_size: int = DEFAULT_MAX_PART_SIZE,
    ) -> str:
        """Upload a file as a multipart upload.

        Args:
            file_path: Path of the file to upload.
            upload_name: Object key to store the file under.
            max_part_retry: Total attempts allowed per part.
            max_part_size: Maximum bytes per part.

        Returns:
            The upload ID of the completed upload.

        Raises:
            ValueError: If any argument is invalid.
            FileNotFoundError: If file_path does not exist.
            PartUploadError: If a part failed every attempt. The upload
                has been aborted.
            UploadError: If completion failed. The upload has been aborted.
            Exception: If initiating the upload failed.
        """
        if not file_path:
            raise ValueError("file_path must not be empty")
        if not upload_name or not upload_name.strip():
            raise ValueError("upload_name must not be empty")
        if max_part_retry < 1:
            raise ValueError("max_part_retry must be greater than or equal to 1")
        if max_part_size < 1:
            raise ValueError("max_part_size must be greater than 0")
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")
        self._check_open()

        self.last_result = None
        start_time = time.monotonic()
        file_length = os.path.getsize(file_path)
        target = UploadTarget(
            space_name=self.space_name,
            endpoint_url=self.endpoint_url,
            key=upload_name,
            content_type=guess_content_type(file_path),
        )

        with s3_client_scope(self.credentials, self.endpoint_url, self.region_name) as client:
            upload = MultipartUpload(client, target)
            upload_id = upload.initiate()

            estimated_parts = estimate_parts(file_length, max_part_size)
            self.progress_events.emit(UploadStatus(0, estimated_parts, 0, file_length))

            try:
                parts_uploaded = self._upload_parts(
                    upload, file_path, file_length, max_part_retry, max_part_size, estimated_parts
                )
                upload.complete(parts_uploaded)
            except Exception as e:
                self._abort(upload, e)
                if isinstance(e, UploadError):
                    raise
                raise UploadError(
                    f"Upload of {upload_name} failed and was aborted: {e}",
                    upload_id=upload_id,
                ) from e

        self.last_result = UploadResult(
            upload_id=upload_id,
            key=upload_name,
            space_name=self.space_name,
            parts=parts_uploaded,
            total_bytes=file_length,
            duration_seconds=time.monotonic() - start_time,
        )
        return upload_id

    def download_file(
        self,
        upload_name: str,
        destination: str,
        expires_in: int = 3600,
        max_attempts: int = 3,
        delays: Sequence[float] = (5.0, 15.0, 30.0),
    ) -> int:
        """Download an object to a local file through a presigned URL.

        Args:
            upload_name: Object key to download.
            destination: Local path to write to.
            expires_in: Lifetime of the presigned URL in seconds.
            max_attempts: Attempts for transient HTTP failures.
            delays: Backoff delays between attempts.

        Returns:
            Number of bytes written.

        Raises:
            ValueError: If upload_name or destination is empty.
            RetryExhausted: If every attempt failed with a transient error.
            httpx.HTTPStatusError: If the store rejected the request.
        """
        if not upload_name or not upload_name.strip():
            raise ValueError("upload_name must not be empty")
        if not destination:
            raise ValueError("destination must not be empty")
        self._check_open()

        with s3_client_scope(self.credentials, self.endpoint_url, self.region_name) as client:
            url = client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.space_name, "Key": upload_name},
                ExpiresIn=expires_in,
            )

        # Stream into a sibling temp file; destination is only replaced on success
        fd, partial_path = tempfile.mkstemp(
            prefix=".download-",
            suffix=".part",
            dir=os.path.dirname(os.path.abspath(destination)),
        )
        os.close(fd)
        try:
            with httpx.Client(timeout=60.0) as http_client:
                written = retry_with_backoff(
                    self._stream_to_file,
                    max_attempts=max_attempts,
                    delays=delays,
                    args=(http_client, url, partial_path),
                )
            os.replace(partial_path, destination)
        except Exception:
            if os.path.exists(partial_path):
                os.remove(partial_path)
            raise

        logger.info("Downloaded %s (%d bytes) to %s", upload_name, written, destination)
        return written

    def close(self) -> None:
        """Release the manager. Owned credentials are wiped."""
        if self._closed:
            return
        if self._owns_credentials:
            self.credentials.dispose()
        self._closed = True

    def _upload_parts(
        self,
        upload: MultipartUpload,
        file_path: str,
        file_length: int,
        max_part_retry: int,
        max_part_size: int,
        estimated_parts: int,
    ) -> int:
        """Upload every part in order. Returns the number of parts."""
        parts_uploaded = 0

        with open(file_path, "rb") as f:
            for part in plan_parts(file_length, max_part_size):

                def attempt(part=part):
                    return upload.upload_part(part, read_part(f, part))

                def on_failure(attempt_number: int, error: Exception, part=part):
                    logger.warning(
                        "Part %d of %s failed on try #%d: %s",
                        part.part_number,
                        upload.upload_id,
                        attempt_number,
                        error,
                    )
                    self.failure_events.emit(
                        UploadFailure(
                            f"Failed to upload part {part.part_number} on try #{attempt_number}",
                            error,
                        )
                    )

                try:
                    retry_attempts(
                        attempt,
                        max_attempts=max_part_retry,
                        on_failure=on_failure,
                        delays=self.retry_delays,
                    )
                except RetryExhausted as e:
                    raise PartUploadError(
                        part.part_number, e.attempts, upload_id=upload.upload_id
                    ) from e.last_error

                parts_uploaded = part.part_number
                self.progress_events.emit(
                    UploadStatus(part.part_number, estimated_parts, part.end, file_length)
                )

        return parts_uploaded

    def _abort(self, upload: MultipartUpload, cause: Exception) -> None:
        """Abort a failed session and report the root cause."""
        try:
            upload.abort()
        except Exception as abort_error:
            logger.error(
                "Abort of upload %s failed; it may remain until the next cleanup: %s",
                upload.upload_id,
                abort_error,
            )
        logger.error("Upload %s of %s aborted: %s", upload.upload_id, upload.target.key, cause)
        self.failure_events.emit(
            UploadFailure(f"Upload of {upload.target.key} failed and was aborted", cause)
        )

    @staticmethod
    def _stream_to_file(http_client: httpx.Client, url: str, destination: str) -> int:
        written = 0
        with http_client.stream("GET", url) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
                    written += len(chunk)
        return written

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("SpacesUploadManager has been closed")

    def __enter__(self) -> "SpacesUploadManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
